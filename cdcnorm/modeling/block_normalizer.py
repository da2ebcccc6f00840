# encoding: utf-8
"""
@author:  Ryuk
@contact: jeryuklau@gmail.com

Codeword-dependent cepstral normalization of a block of frames.

Every observed frame z is explained by each codeword k of the clean-speech
mixture shifted by the codeword's environment correction r_k and the
utterance tilt q:

    distance_k = sum_j (z_j - q_j - mean_kj - r_kj)^2 / var_kj
    fk_k       = exp(-distance_k / 2) * prior_k

and is replaced with the responsibility weighted reconstruction

    x_j = sum_k (z_j - q_j - r_kj) * fk_k / sum_k fk_k
"""

import logging

import numpy as np

from .base import BaseCepstralNormalizer, _check_shape

logger = logging.getLogger(__name__)


def _offsets(environment):
    # mean + correction, the part of the prediction that depends on the codeword
    return environment.means + environment.corrections


def _block_distances(z, environment, offsets):
    resid = (z - environment.tilt)[:, None, :] - offsets[None, :, :]
    return np.sum(resid * resid / environment.variances[None, :, :], axis=2)


def codeword_distances(frames, environment):
    """
    Variance normalized squared distance of every frame to every compensated
    codeword.

    A single (D,) frame is treated as one frame, anything else must be
    (num_frames, D).

    Returns:
        np.ndarray: (num_frames, num_codes), all entries >= 0
    """
    z = np.asarray(frames, dtype=np.float64)
    if z.ndim == 1:
        z = z[None, :]
    _check_shape(z.shape, environment.dim)
    with np.errstate(over="ignore", invalid="ignore"):
        return _block_distances(z, environment, _offsets(environment))


def codeword_weights(frames, environment):
    """
    Unnormalized posterior weight ``exp(-distance / 2) * prior`` of every
    codeword. Entries underflow to exactly 0 for frames far from a codeword.

    Returns:
        np.ndarray: (num_frames, num_codes)
    """
    distances = codeword_distances(frames, environment)
    with np.errstate(under="ignore", invalid="ignore"):
        return np.exp(-0.5 * distances) * environment.priors[None, :]


class BlockNormalizer(BaseCepstralNormalizer):
    """
    numpy implementation of the block normalizer.

    Frames are evaluated ``block_size`` at a time, each block as a
    (block_size, num_codes, D) residual tensor. Frames never interact, so a
    non-finite value in one frame only spoils that frame.
    """

    def normalize(self, frames, environment):
        self._check_environment(environment)
        self._check_array_frames(frames, environment.dim)

        num_frames = frames.shape[0]
        if num_frames == 0:
            return 0

        offsets = _offsets(environment)
        num_fallback = 0
        for start in range(0, num_frames, self.block_size):
            stop = min(start + self.block_size, num_frames)
            cleaned, zero_den = self._normalize_block(frames[start:stop], environment, offsets)
            frames[start:stop] = cleaned
            num_fallback += int(np.count_nonzero(zero_den))

        logger.debug(f"Normalized {num_frames} frames against {environment.num_codes} codewords")
        if num_fallback:
            logger.warning(
                f"{num_fallback} of {num_frames} frames had every codeword weight underflow, "
                f"applied '{self.zero_den_policy}'"
            )
        return num_fallback

    def _normalize_block(self, block, environment, offsets):
        z = block.astype(np.float64)
        shifted = z - environment.tilt

        with np.errstate(over="ignore", under="ignore", invalid="ignore", divide="ignore"):
            distances = _block_distances(z, environment, offsets)
            fk = np.exp(-0.5 * distances) * environment.priors[None, :]
            den = np.sum(fk, axis=1)

            weights = fk
            if self.skip_first:
                weights = fk.copy()
                weights[:, 0] = 0.0
            # sum_k (shifted - r_k) * w_k without building the (n, K, D) target
            x = shifted * np.sum(weights, axis=1)[:, None] - weights @ environment.corrections

            zero_den = den == 0
            safe_den = np.where(zero_den, 1.0, den)
            cleaned = x / safe_den[:, None]

        if np.any(zero_den):
            fallback = shifted if self.zero_den_policy == "subtract_tilt" else z
            cleaned[zero_den] = fallback[zero_den]
            logger.debug(f"Zero denominator in block frames {np.flatnonzero(zero_den).tolist()}")

        return cleaned, zero_den
