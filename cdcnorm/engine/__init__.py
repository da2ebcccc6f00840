# -*- coding:utf-8 -*-
"""
@author:：Ryuk
@contact: jeryuklau@gmail.com
"""

from .gate import CDCNState, block_cdcn_norm
from .defaults import *

__all__ = [k for k in globals().keys() if not k.startswith("_")]
