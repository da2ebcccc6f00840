# encoding: utf-8
"""
@author:  Ryuk
@contact: jeryuklau@gmail.com
"""

import logging

import numpy as np

from cdcnorm.config import configurable

logger = logging.getLogger(__name__)


class FrameShapeError(ValueError):
    """Frames cannot be normalized in place against the given model."""


class BaseCepstralNormalizer:
    """
    Base class of the block normalizers.

    A normalizer owns no model state. It is handed an
    :class:`~cdcnorm.modeling.environment.EnvironmentModel` and a
    ``(num_frames, D)`` block of cepstra on every call and overwrites the
    frames with their cleaned estimate.

    Args:
        numerator (str): "all" sums every codeword into the reconstruction,
            "skip_first" leaves codeword 0 out of it while still counting it
            in the denominator.
        zero_den_policy (str): applied to frames whose weights all underflow,
            "subtract_tilt" removes the tilt from every coefficient,
            "passthrough" leaves the frame as observed.
        block_size (int): frames evaluated together.
        validate (bool): validate the environment model on every call.
    """

    NUMERATOR_MODES = ("all", "skip_first")
    ZERO_DEN_POLICIES = ("subtract_tilt", "passthrough")

    @configurable
    def __init__(self, numerator="all", zero_den_policy="subtract_tilt", block_size=256, validate=True):
        if numerator not in self.NUMERATOR_MODES:
            logger.error(f"Invalid numerator mode {numerator}")
            raise ValueError(f"numerator must be one of {self.NUMERATOR_MODES}, got {numerator!r}")
        if zero_den_policy not in self.ZERO_DEN_POLICIES:
            logger.error(f"Invalid zero denominator policy {zero_den_policy}")
            raise ValueError(
                f"zero_den_policy must be one of {self.ZERO_DEN_POLICIES}, got {zero_den_policy!r}"
            )
        if int(block_size) < 1:
            logger.error(f"Invalid block size {block_size}")
            raise ValueError(f"block_size must be positive, got {block_size}")

        self.numerator = numerator
        self.zero_den_policy = zero_den_policy
        self.block_size = int(block_size)
        self.validate = validate

    @classmethod
    def from_config(cls, cfg):
        return {
            "numerator": cfg.CDCN.NUMERATOR,
            "zero_den_policy": cfg.CDCN.ZERO_DEN_POLICY,
            "block_size": cfg.CDCN.BLOCK_SIZE,
            "validate": cfg.CDCN.VALIDATE,
        }

    @property
    def skip_first(self):
        return self.numerator == "skip_first"

    def normalize(self, frames, environment):
        """
        Overwrite ``frames`` with the cleaned estimate.

        Args:
            frames: (num_frames, D) floating point block, modified in place
            environment (EnvironmentModel): codebook with noise and tilt

        Returns:
            int: number of frames that took the zero denominator fallback
        """
        raise NotImplementedError("Subclasses must implement normalize")

    def normalize_frame(self, frame, environment):
        """Return the cleaned estimate of a single frame, leaving it untouched."""
        block = np.array(frame, dtype=np.float64, copy=True).reshape(1, -1)
        self.normalize(block, environment)
        return block[0]

    def _check_environment(self, environment):
        if self.validate:
            environment.validate()

    @staticmethod
    def _check_array_frames(frames, dim):
        if not isinstance(frames, np.ndarray):
            _fail(f"frames must be a numpy array, got {type(frames).__name__}")
        if not np.issubdtype(frames.dtype, np.floating):
            _fail(f"frames must be floating point, got {frames.dtype}")
        _check_shape(frames.shape, dim)
        if not frames.flags.writeable:
            _fail("frames are read-only and cannot be normalized in place")


def _check_shape(shape, dim):
    if len(shape) != 2:
        _fail(f"frames must be 2-D (num_frames, D), got shape {tuple(shape)}")
    if shape[1] != dim:
        _fail(f"frames have {shape[1]} coefficients, environment model has {dim}")


def _fail(msg):
    logger.error(msg)
    raise FrameShapeError(msg)
