# encoding: utf-8
"""
This file contains components with some default boilerplate logic user may need
when normalizing utterances. They will not work for everyone, but many users may
find them useful.
"""

import logging

from tqdm import tqdm

from cdcnorm.modeling import InvalidEnvironmentError, build_normalizer
from cdcnorm.utils.logger import setup_logger
from .gate import CDCNState, block_cdcn_norm

__all__ = ["default_setup", "DefaultNormalizer"]


def default_setup(cfg):
    """
    Set up the cdcnorm logger and log the full config.
    Args:
        cfg (CfgNode): the full config to be used
    """
    output_dir = cfg["OUTPUT_DIR"]
    logger = setup_logger(output_dir if output_dir else None)
    logger.info("Running with full config:\n{}".format(cfg))
    return logger


class DefaultNormalizer:
    """
    Normalize utterances with the normalizer and switches given by a config.

    The environment model is installed with :meth:`set_environment`, usually
    after the external estimator has produced noise and tilt for the
    utterance. Calling the normalizer before that is a pass-through.
    Examples:
    .. code-block:: python
        normalizer = DefaultNormalizer(cfg)
        normalizer.set_environment(env)
        normalizer(frames)  # frames now hold the cleaned cepstra
    """

    def __init__(self, cfg):
        self.cfg = cfg.clone()
        self.logger = logging.getLogger("cdcnorm")
        self.normalizer = build_normalizer(self.cfg)
        self.state = CDCNState(enabled=self.cfg["CDCN"]["ENABLED"])
        self.environment = None
        self.dim = self.cfg["CDCN"]["NUM_COEFF"] + 1

    def set_environment(self, environment):
        if environment.dim != self.dim:
            self.logger.error(
                f"Environment model has {environment.dim} coefficients, config expects {self.dim}"
            )
            raise InvalidEnvironmentError(
                f"environment dimension {environment.dim} does not match NUM_COEFF + 1 = {self.dim}"
            )
        environment.validate()
        self.environment = environment
        self.state.mark_initialized()

    def __call__(self, frames):
        """
        Args:
            frames: (num_frames, NUM_COEFF + 1) cepstra, modified in place
        Returns:
            bool: True if the frames were normalized
        """
        return block_cdcn_norm(frames, self.environment, self.normalizer, self.state)

    def normalize_utterances(self, utterances):
        """
        Normalize every utterance in place.
        Returns:
            list[int]: frames that took the zero denominator fallback, per
                utterance, or an empty list if normalization did not run
        """
        if not self.state.ready:
            self.logger.info(f"Normalization skipped for {len(utterances)} utterances ({self.state})")
            return []

        fallbacks = []
        for frames in tqdm(utterances, desc="cdcn", disable=not self.cfg["ENGINE"]["SHOW_PROGRESS"]):
            fallbacks.append(self.normalizer.normalize(frames, self.environment))
        self.logger.info(
            f"Normalized {len(utterances)} utterances, {sum(fallbacks)} frames fell back"
        )
        return fallbacks
