# encoding: utf-8
"""
@author:  Ryuk
@contact: jeryuklau@gmail.com
"""

import copy
import logging
from collections import OrderedDict

from .metrics import build_metrics

logger = logging.getLogger(__name__)


class CepstralEvaluator:
    """
    Accumulates metrics between cleaned and clean reference cepstra over a
    set of utterances and reports frame weighted averages.
    """

    def __init__(self, cfg):
        self.cfg = cfg
        self.metrics = build_metrics(self.cfg)
        self._predictions = []

    def reset(self):
        self._predictions = []

    def process(self, cleaned, reference):
        results = self.metrics(cleaned, reference)
        results["num_frames"] = len(cleaned)
        self._predictions.append(results)

    def evaluate(self):
        total_frames = sum(p["num_frames"] for p in self._predictions)

        self._results = OrderedDict()
        if total_frames == 0:
            logger.warning("No frames were processed, nothing to evaluate")
            return copy.deepcopy(self._results)

        for metric_name in self.metrics.metric_list.keys():
            total = sum(p[metric_name] * p["num_frames"] for p in self._predictions)
            self._results[metric_name] = total / total_frames

        return copy.deepcopy(self._results)
