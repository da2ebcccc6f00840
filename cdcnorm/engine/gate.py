# encoding: utf-8
"""
@author:  Ryuk
@contact: jeryuklau@gmail.com
"""

import logging

logger = logging.getLogger(__name__)


class CDCNState:
    """
    Whether normalization may run for the next utterance.

    ``enabled`` is the user switch. ``initialized`` becomes True once an
    environment model has been estimated for the first time; until then the
    codebook corrections and tilt are meaningless and frames are left alone.
    """

    def __init__(self, enabled=True, initialized=False):
        self.enabled = bool(enabled)
        self.initialized = bool(initialized)

    def mark_initialized(self):
        self.initialized = True

    @property
    def ready(self):
        return self.enabled and self.initialized

    def __repr__(self):
        return f"CDCNState(enabled={self.enabled}, initialized={self.initialized})"


def block_cdcn_norm(frames, environment, normalizer, state):
    """
    Normalize ``frames`` in place when ``state`` allows it.

    A disabled or not yet initialized state, or a missing environment model,
    is a pass-through: the frames stay bit-identical and nothing is raised.

    Returns:
        bool: True if the normalizer ran
    """
    if not state.enabled:
        return False
    if not state.initialized or environment is None:
        logger.debug("Environment model not initialized, skipping normalization")
        return False

    normalizer.normalize(frames, environment)
    return True
