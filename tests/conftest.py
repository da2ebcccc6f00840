import logging

import numpy as np
import pytest

from cdcnorm.modeling import EnvironmentModel

NUM_COEFF = 12
DIM = NUM_COEFF + 1


def _make_environment(num_codes=8, dim=DIM, seed=0):
    rng = np.random.default_rng(seed)
    return EnvironmentModel(
        means=rng.normal(0.0, 1.0, (num_codes, dim)),
        variances=rng.uniform(0.5, 2.0, (num_codes, dim)),
        priors=rng.uniform(0.1, 1.0, num_codes),
        corrections=rng.normal(0.0, 0.2, (num_codes, dim)),
        noise=rng.normal(0.0, 0.1, dim),
        tilt=rng.normal(0.0, 0.1, dim),
    )


@pytest.fixture
def make_environment():
    return _make_environment


@pytest.fixture
def environment():
    return _make_environment()


@pytest.fixture
def frames(environment):
    # observed frames scattered around the compensated codewords
    rng = np.random.default_rng(1)
    idx = rng.integers(0, environment.num_codes, 50)
    clean = environment.means[idx] + environment.corrections[idx] + environment.tilt
    return clean + rng.normal(0.0, 0.5, (50, environment.dim))


@pytest.fixture
def propagating_logs(monkeypatch):
    # setup_logger stops the package logger propagating, caplog listens on the root
    monkeypatch.setattr(logging.getLogger("cdcnorm"), "propagate", True)
