# encoding: utf-8
"""
@author:  Ryuk
@contact: jeryuklau@gmail.com
"""

from .cepstral_evaluation import CepstralEvaluator
from .metrics import (
    build_metrics,
    cepstral_distance,
    cepstral_distance_db,
    codeword_posteriors,
    frame_log_likelihood,
    mean_squared_error
)

__all__ = [k for k in globals().keys() if not k.startswith("_")]
