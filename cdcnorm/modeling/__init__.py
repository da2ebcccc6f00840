# encoding: utf-8
"""
@author:  Ryuk
@contact: jeryuklau@gmail.com
"""

import logging

from .base import BaseCepstralNormalizer, FrameShapeError
from .block_normalizer import BlockNormalizer, codeword_distances, codeword_weights
from .environment import Codeword, EnvironmentModel, InvalidEnvironmentError
from .torch_normalizer import TorchBlockNormalizer

logger = logging.getLogger(__name__)

normalizers_dict = {
    "numpy": BlockNormalizer,
    "torch": TorchBlockNormalizer
}


def build_normalizer(cfg):
    """
    Build the normalizer named by ``cfg.CDCN.BACKEND``.
    """
    backend = cfg["CDCN"]["BACKEND"]
    if backend in normalizers_dict:
        normalizer = normalizers_dict[backend](cfg)
        logger.info(f"Built {type(normalizer).__name__} (numerator={normalizer.numerator}, "
                    f"zero_den_policy={normalizer.zero_den_policy})")
        return normalizer
    else:
        logger.error(f"Invalid normalizer backend named {backend}")
        raise KeyError(backend)


__all__ = [
    'BaseCepstralNormalizer',
    'BlockNormalizer',
    'Codeword',
    'EnvironmentModel',
    'FrameShapeError',
    'InvalidEnvironmentError',
    'TorchBlockNormalizer',
    'build_normalizer',
    'codeword_distances',
    'codeword_weights'
]
