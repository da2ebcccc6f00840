# encoding: utf-8
"""
@author:  Ryuk
@contact: jeryuklau@gmail.com
"""

import logging

import torch

from cdcnorm.config import configurable
from cdcnorm.utils.device import to_device
from .base import BaseCepstralNormalizer, _check_shape, _fail

logger = logging.getLogger(__name__)


class TorchBlockNormalizer(BaseCepstralNormalizer):
    """
    Same estimator as :class:`~cdcnorm.modeling.block_normalizer.BlockNormalizer`
    evaluated with batched tensor ops on ``device``.

    Frames may be a numpy array or a torch tensor; either is overwritten in
    place. The arithmetic runs in float64 so both backends agree to rounding.
    """

    @configurable
    def __init__(self, device="cpu", **kwargs):
        super().__init__(**kwargs)
        self.device = torch.device(device)

    @classmethod
    def from_config(cls, cfg):
        ret = super().from_config(cfg)
        ret["device"] = cfg.MODEL.DEVICE
        return ret

    def normalize(self, frames, environment):
        self._check_environment(environment)
        if torch.is_tensor(frames):
            if not torch.is_floating_point(frames):
                _fail(f"frames must be floating point, got {frames.dtype}")
            _check_shape(frames.shape, environment.dim)
        else:
            self._check_array_frames(frames, environment.dim)

        num_frames = frames.shape[0]
        if num_frames == 0:
            return 0

        env = to_device(
            {
                "tilt": environment.tilt,
                "offsets": environment.means + environment.corrections,
                "variances": environment.variances,
                "priors": environment.priors,
                "corrections": environment.corrections,
            },
            self.device,
            torch.float64,
        )

        num_fallback = 0
        with torch.no_grad():
            for start in range(0, num_frames, self.block_size):
                stop = min(start + self.block_size, num_frames)
                z = to_device(frames[start:stop], self.device, torch.float64)
                cleaned, zero_den = self._normalize_block(z, env)
                num_fallback += int(zero_den.sum().item())

                if torch.is_tensor(frames):
                    frames[start:stop].copy_(cleaned.to(device=frames.device, dtype=frames.dtype))
                else:
                    frames[start:stop] = cleaned.cpu().numpy().astype(frames.dtype, copy=False)

        logger.debug(
            f"Normalized {num_frames} frames against {environment.num_codes} codewords on {self.device}"
        )
        if num_fallback:
            logger.warning(
                f"{num_fallback} of {num_frames} frames had every codeword weight underflow, "
                f"applied '{self.zero_den_policy}'"
            )
        return num_fallback

    def _normalize_block(self, z, env):
        shifted = z - env["tilt"]
        resid = shifted[:, None, :] - env["offsets"][None, :, :]
        distances = torch.sum(resid * resid / env["variances"][None, :, :], dim=2)
        fk = torch.exp(-0.5 * distances) * env["priors"][None, :]
        den = torch.sum(fk, dim=1)

        weights = fk
        if self.skip_first:
            weights = fk.clone()
            weights[:, 0] = 0.0
        x = shifted * torch.sum(weights, dim=1, keepdim=True) - weights @ env["corrections"]

        zero_den = den == 0
        cleaned = x / torch.where(zero_den, torch.ones_like(den), den)[:, None]

        fallback = shifted if self.zero_den_policy == "subtract_tilt" else z
        cleaned = torch.where(zero_den[:, None], fallback, cleaned)
        return cleaned, zero_den

