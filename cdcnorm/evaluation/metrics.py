# encoding: utf-8
"""
@author:  Ryuk
@contact: jeryuklau@gmail.com
"""

import logging

import numpy as np
from scipy.special import logsumexp, softmax

from cdcnorm.modeling.block_normalizer import codeword_distances

logger = logging.getLogger(__name__)

# 10 / ln(10), converts a natural log cepstral distance to dB
_DB_SCALE = 10.0 / np.log(10.0)


def _pair(estimate, reference):
    estimate = np.asarray(estimate, dtype=np.float64)
    reference = np.asarray(reference, dtype=np.float64)
    if estimate.shape != reference.shape:
        logger.error(f"Shape mismatch between estimate {estimate.shape} and reference {reference.shape}")
        raise ValueError(f"estimate shape {estimate.shape} != reference shape {reference.shape}")
    return estimate.reshape(-1, estimate.shape[-1]), reference.reshape(-1, reference.shape[-1])


def mean_squared_error(estimate, reference):
    estimate, reference = _pair(estimate, reference)
    if estimate.shape[0] == 0:
        return 0.0
    return float(np.mean((estimate - reference) ** 2))


def cepstral_distance(estimate, reference, skip_c0=True):
    """
    Euclidean distance between estimated and reference cepstra, averaged over
    frames. c0 carries the frame energy and is left out by default.
    """
    estimate, reference = _pair(estimate, reference)
    if estimate.shape[0] == 0:
        return 0.0
    start = 1 if skip_c0 else 0
    diff = estimate[:, start:] - reference[:, start:]
    return float(np.mean(np.sqrt(np.sum(diff ** 2, axis=1))))


def cepstral_distance_db(estimate, reference, skip_c0=True):
    """Cepstral distance in dB, ``10 / ln 10 * sqrt(2 * sum_j (c_j - c'_j)^2)``."""
    return _DB_SCALE * np.sqrt(2.0) * cepstral_distance(estimate, reference, skip_c0=skip_c0)


def frame_log_likelihood(frames, environment):
    """
    log sum_k prior_k exp(-distance_k / 2) for every frame.

    Computed in the log domain, so frames whose linear weights all underflow
    still get a finite score.
    """
    distances = codeword_distances(frames, environment)
    return logsumexp(-0.5 * distances, axis=1, b=environment.priors[None, :])


def codeword_posteriors(frames, environment):
    """
    Normalized responsibilities of every codeword for every frame. Rows sum to
    one as long as some codeword has a positive prior.
    """
    distances = codeword_distances(frames, environment)
    with np.errstate(divide="ignore"):
        log_priors = np.log(environment.priors)
    return softmax(-0.5 * distances + log_priors[None, :], axis=1)


metrics_dict = {
    "MSE": mean_squared_error,
    "CD": cepstral_distance,
    "CD_DB": cepstral_distance_db
}


class Metrics:
    def __init__(self, metric_names, skip_c0=True):
        self.skip_c0 = skip_c0
        self.metric_list = {}
        for metric_name in metric_names:
            if metric_name not in metrics_dict:
                logger.error(f"Invalid metric named {metric_name}")
                raise KeyError(metric_name)
            self.metric_list[metric_name] = metrics_dict[metric_name]

    def __call__(self, estimate, reference):
        metric_scores = {}
        for metric_name, func in self.metric_list.items():
            if metric_name == "MSE":
                metric_scores[metric_name] = func(estimate, reference)
            else:
                metric_scores[metric_name] = func(estimate, reference, skip_c0=self.skip_c0)
        return metric_scores


def build_metrics(cfg):
    return Metrics(cfg["TEST"]["METRICS"], skip_c0=cfg["TEST"]["SKIP_C0"])
