# encoding: utf-8
"""
@author:  Ryuk
@contact: jeryuklau@gmail.com
"""

from .config import get_cfg
from .engine import CDCNState, DefaultNormalizer, block_cdcn_norm
from .modeling import (
    BlockNormalizer,
    Codeword,
    EnvironmentModel,
    FrameShapeError,
    InvalidEnvironmentError,
    TorchBlockNormalizer,
    build_normalizer
)

__version__ = "0.1.0"
