# encoding: utf-8
"""
@author:  Ryuk
@contact: jeryuklau@gmail.com
"""

import logging
from collections import namedtuple

import numpy as np

logger = logging.getLogger(__name__)


Codeword = namedtuple("Codeword", ["mean", "variance", "prior", "correction"])
Codeword.__doc__ = """
One component of the clean-speech mixture.

mean, variance, correction are vectors of the common dimension D; prior is the
mixture prior already divided by the variance normalization.
"""


class InvalidEnvironmentError(ValueError):
    """The supplied environment model breaks a precondition of the estimator."""


def _frozen(values, ndim, what):
    try:
        arr = np.array(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        logger.error(f"{what} is not a numeric array")
        raise InvalidEnvironmentError(f"{what} is not a numeric array") from e
    if arr.ndim != ndim:
        logger.error(f"{what} must be {ndim}-D, got shape {arr.shape}")
        raise InvalidEnvironmentError(f"{what} must be {ndim}-D, got shape {arr.shape}")
    arr.flags.writeable = False
    return arr


class EnvironmentModel:
    """
    Codebook of clean-speech codewords plus the noise and tilt estimated for
    the current utterance.

    The model is read-only: every array is copied on construction and marked
    non-writeable. A new noise/tilt estimate gives a new model through
    :meth:`with_estimates`, the codebook arrays are shared between the two.

    Args:
        means (array-like): (num_codes, D) codeword means
        variances (array-like): (num_codes, D) codeword variances, > 0
        priors (array-like): (num_codes,) prior / variance normalization
        corrections (array-like): (num_codes, D) environment corrections
        noise (array-like): (D,) noise estimate, zeros when omitted
        tilt (array-like): (D,) spectral tilt estimate, zeros when omitted
        validate (bool): run :meth:`validate` after construction
    """

    def __init__(self, means, variances, priors, corrections, noise=None, tilt=None, validate=True):
        self.means = _frozen(means, 2, "means")
        self.variances = _frozen(variances, 2, "variances")
        self.priors = _frozen(priors, 1, "priors")
        self.corrections = _frozen(corrections, 2, "corrections")

        dim = self.means.shape[1]
        self.noise = _frozen(np.zeros(dim) if noise is None else noise, 1, "noise")
        self.tilt = _frozen(np.zeros(dim) if tilt is None else tilt, 1, "tilt")

        if validate:
            self.validate()

    @classmethod
    def from_codewords(cls, codewords, noise=None, tilt=None, validate=True):
        codewords = [Codeword(*c) for c in codewords]
        if not codewords:
            logger.error("Environment model needs at least one codeword")
            raise InvalidEnvironmentError("Environment model needs at least one codeword")
        return cls(
            means=[c.mean for c in codewords],
            variances=[c.variance for c in codewords],
            priors=[c.prior for c in codewords],
            corrections=[c.correction for c in codewords],
            noise=noise,
            tilt=tilt,
            validate=validate,
        )

    @property
    def num_codes(self):
        return self.means.shape[0]

    @property
    def dim(self):
        return self.means.shape[1]

    @property
    def num_coeff(self):
        return self.dim - 1

    def __len__(self):
        return self.num_codes

    def __getitem__(self, k):
        return Codeword(self.means[k], self.variances[k], float(self.priors[k]), self.corrections[k])

    def __iter__(self):
        for k in range(self.num_codes):
            yield self[k]

    def __repr__(self):
        return f"{type(self).__name__}(num_codes={self.num_codes}, dim={self.dim})"

    def with_estimates(self, noise=None, tilt=None):
        """
        Return a model with the same codebook and new per-utterance estimates.
        An omitted estimate is carried over from this model.
        """
        return type(self)(
            self.means,
            self.variances,
            self.priors,
            self.corrections,
            noise=self.noise if noise is None else noise,
            tilt=self.tilt if tilt is None else tilt,
        )

    def validate(self):
        """
        Check every precondition the estimator relies on and raise
        :class:`InvalidEnvironmentError` on the first one that fails.
        """
        num_codes, dim = self.means.shape
        if num_codes < 1:
            self._fail("Environment model needs at least one codeword")
        if dim < 1:
            self._fail("Codeword vectors must have at least one coefficient")

        for name in ("variances", "corrections"):
            shape = getattr(self, name).shape
            if shape != (num_codes, dim):
                self._fail(f"{name} has shape {shape}, expected {(num_codes, dim)}")
        if self.priors.shape != (num_codes,):
            self._fail(f"priors has shape {self.priors.shape}, expected {(num_codes,)}")
        for name in ("noise", "tilt"):
            shape = getattr(self, name).shape
            if shape != (dim,):
                self._fail(f"{name} has shape {shape}, expected {(dim,)}")

        for name in ("means", "priors", "corrections", "noise", "tilt"):
            if not np.all(np.isfinite(getattr(self, name))):
                self._fail(f"{name} contains non-finite values")

        if not np.all(np.isfinite(self.variances)) or np.any(self.variances <= 0):
            bad = np.argwhere(~(self.variances > 0) | ~np.isfinite(self.variances))[0]
            self._fail(f"variances must be finite and strictly positive, codeword {bad[0]} "
                       f"coefficient {bad[1]} is {self.variances[tuple(bad)]}")
        if np.any(self.priors < 0):
            self._fail("priors must be non-negative")
        # fk_k <= prior_k, so a finite prior sum keeps every denominator finite
        with np.errstate(over="ignore"):
            prior_sum = np.sum(self.priors)
        if not np.isfinite(prior_sum):
            self._fail("priors sum to a non-finite value")

    @staticmethod
    def _fail(msg):
        logger.error(msg)
        raise InvalidEnvironmentError(msg)
