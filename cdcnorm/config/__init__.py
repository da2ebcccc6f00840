# encoding: utf-8
"""
@author:  Ryuk
@contact: jeryuklau@gmail.com
"""

from .config import CfgNode, get_cfg, configurable

__all__ = [
    'CfgNode',
    'get_cfg',
    'configurable'
]
