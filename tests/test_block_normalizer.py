import logging
import math

import numpy as np
import pytest

from cdcnorm.config import get_cfg
from cdcnorm.modeling import (
    BlockNormalizer,
    EnvironmentModel,
    FrameShapeError,
    codeword_distances,
    codeword_weights,
)


def loop_normalize(frames, env, skip_first=False, policy="subtract_tilt"):
    """Frame by frame, codeword by codeword evaluation of the estimator."""
    out = np.array(frames, dtype=np.float64)
    for i, z in enumerate(np.array(frames, dtype=np.float64)):
        x = np.zeros(env.dim)
        den = 0.0
        for k in range(env.num_codes):
            distance = 0.0
            for j in range(env.dim):
                diff = z[j] - env.tilt[j] - env.means[k, j] - env.corrections[k, j]
                distance += diff * diff / env.variances[k, j]
            fk = math.exp(-distance / 2) * env.priors[k]
            if not (skip_first and k == 0):
                x += (z - env.tilt - env.corrections[k]) * fk
            den += fk
        if den != 0:
            out[i] = x / den
        elif policy == "subtract_tilt":
            out[i] = z - env.tilt
        else:
            out[i] = z
    return out


def single_codeword_env(dim=5, tilt=None, correction=None):
    return EnvironmentModel(
        means=np.full((1, dim), 0.5),
        variances=np.ones((1, dim)),
        priors=[0.7],
        corrections=np.zeros((1, dim)) if correction is None else [correction],
        tilt=tilt,
    )


def degenerate_env(dim=5):
    # tiny variances: any observation far from zero sends every weight to exactly 0
    return EnvironmentModel(
        means=np.zeros((2, dim)),
        variances=np.full((2, dim), 1e-30),
        priors=[0.5, 0.5],
        corrections=np.zeros((2, dim)),
        tilt=np.arange(dim, dtype=np.float64),
    )


def test_distances_are_non_negative(environment, frames):
    distances = codeword_distances(frames, environment)

    assert distances.shape == (len(frames), environment.num_codes)
    assert np.all(distances >= 0)


def test_distances_reject_misshaped_frames(environment):
    with pytest.raises(FrameShapeError):
        codeword_distances(np.zeros((environment.dim, 2)), environment)
    with pytest.raises(FrameShapeError):
        codeword_weights(np.zeros((2, 2 * environment.dim)), environment)


def test_single_frame_distances(environment, frames):
    distances = codeword_distances(frames[3], environment)

    assert distances.shape == (1, environment.num_codes)
    np.testing.assert_array_equal(distances, codeword_distances(frames[3:4], environment))


def test_distance_and_weight_definition(environment, frames):
    z = frames[3]
    k = 2
    diff = z - environment.tilt - environment.means[k] - environment.corrections[k]
    expected = np.sum(diff ** 2 / environment.variances[k])

    assert codeword_distances(frames, environment)[3, k] == pytest.approx(expected)
    assert codeword_weights(frames, environment)[3, k] == pytest.approx(
        math.exp(-expected / 2) * environment.priors[k]
    )


@pytest.mark.parametrize("numerator", ["all", "skip_first"])
def test_matches_frame_by_frame_evaluation(environment, frames, numerator):
    expected = loop_normalize(frames, environment, skip_first=numerator == "skip_first")

    normalizer = BlockNormalizer(numerator=numerator)
    fallback = normalizer.normalize(frames, environment)

    assert fallback == 0
    np.testing.assert_allclose(frames, expected, rtol=1e-10, atol=1e-12)


def test_single_codeword_skip_first_gives_zero_frame():
    env = single_codeword_env()
    frames = np.array([[0.4, 0.6, 0.5, 0.3, 0.7]])

    den = codeword_weights(frames, env)[0, 0]
    assert den == pytest.approx(math.exp(-0.5 * np.sum((frames[0] - 0.5) ** 2)) * 0.7)
    assert den != 0

    BlockNormalizer(numerator="skip_first").normalize(frames, env)

    np.testing.assert_array_equal(frames, np.zeros((1, 5)))


def test_single_codeword_all_removes_tilt_and_correction():
    tilt = np.full(5, 0.1)
    correction = np.full(5, -0.2)
    env = single_codeword_env(tilt=tilt, correction=correction)
    observed = np.array([[0.4, 0.6, 0.5, 0.3, 0.7]])
    frames = observed.copy()

    BlockNormalizer(numerator="all").normalize(frames, env)

    np.testing.assert_allclose(frames, observed - tilt - correction)


def test_zero_frames_is_a_no_op(environment):
    frames = np.empty((0, environment.dim))

    assert BlockNormalizer().normalize(frames, environment) == 0
    assert frames.shape == (0, environment.dim)


def test_underflow_subtracts_tilt_from_every_coefficient():
    env = degenerate_env()
    observed = np.full((3, 5), 1e3)
    frames = observed.copy()

    assert np.all(codeword_weights(frames, env) == 0)

    fallback = BlockNormalizer(zero_den_policy="subtract_tilt").normalize(frames, env)

    assert fallback == 3
    np.testing.assert_array_equal(frames, observed - env.tilt)


def test_underflow_passthrough_leaves_frame():
    env = degenerate_env()
    observed = np.full((2, 5), -1e3)
    frames = observed.copy()

    fallback = BlockNormalizer(zero_den_policy="passthrough").normalize(frames, env)

    assert fallback == 2
    np.testing.assert_array_equal(frames, observed)


def test_underflow_is_contained_to_its_frame(environment, frames):
    expected = loop_normalize(frames, environment)
    frames[7] = 1e6
    expected[7] = frames[7] - environment.tilt

    fallback = BlockNormalizer().normalize(frames, environment)

    assert fallback == 1
    np.testing.assert_allclose(frames, expected, rtol=1e-10, atol=1e-12)


def test_non_finite_frame_does_not_spread(environment, frames):
    expected = loop_normalize(frames, environment)
    frames[4, 2] = np.nan

    BlockNormalizer().normalize(frames, environment)

    assert np.all(np.isnan(frames[4]))
    mask = np.ones(len(frames), dtype=bool)
    mask[4] = False
    np.testing.assert_allclose(frames[mask], expected[mask], rtol=1e-10, atol=1e-12)


def test_deterministic(environment, frames):
    first = frames.copy()
    second = frames.copy()

    BlockNormalizer().normalize(first, environment)
    BlockNormalizer().normalize(second, environment)

    assert first.tobytes() == second.tobytes()


def test_block_size_does_not_change_result(environment, frames):
    whole = frames.copy()
    one_by_one = frames.copy()

    BlockNormalizer(block_size=256).normalize(whole, environment)
    BlockNormalizer(block_size=1).normalize(one_by_one, environment)

    np.testing.assert_allclose(whole, one_by_one, rtol=1e-12, atol=1e-14)


def test_estimate_lies_near_matching_codeword():
    dim = 4
    observed = np.array([1.0, -0.5, 0.25, 2.0])
    tilt = np.full(dim, 0.2)
    corrections = np.array([np.full(dim, 0.1), np.full(dim, -0.3)])
    mean_a = observed - tilt - corrections[0]
    mean_b = mean_a + 25.0
    env = EnvironmentModel(
        means=[mean_a, mean_b],
        variances=np.ones((2, dim)),
        priors=[0.5, 0.5],
        corrections=corrections,
        tilt=tilt,
    )

    cleaned = BlockNormalizer().normalize_frame(observed, env)

    corrected_a = mean_a + corrections[0]
    corrected_b = mean_b + corrections[1]
    assert np.linalg.norm(cleaned - corrected_a) < np.linalg.norm(cleaned - corrected_b)
    np.testing.assert_allclose(cleaned, mean_a, atol=1e-8)


def test_normalize_frame_leaves_input(environment, frames):
    frame = frames[0].copy()

    cleaned = BlockNormalizer().normalize_frame(frame, environment)

    np.testing.assert_array_equal(frame, frames[0])
    np.testing.assert_allclose(cleaned, loop_normalize(frames[:1], environment)[0])


def test_float32_frames_stay_float32(environment, frames):
    frames32 = frames.astype(np.float32)

    BlockNormalizer().normalize(frames32, environment)

    assert frames32.dtype == np.float32
    np.testing.assert_allclose(frames32, loop_normalize(frames, environment), rtol=1e-4, atol=1e-5)


def test_frames_are_written_in_place(environment, frames):
    view = frames[10:20]
    before = view.copy()

    BlockNormalizer().normalize(view, environment)

    assert not np.array_equal(frames[10:20], before)
    np.testing.assert_array_equal(frames[10:20], view)


@pytest.mark.parametrize(
    "bad_frames",
    [
        [[0.0] * 13],
        np.zeros((2, 12)),
        np.zeros(13),
        np.zeros((2, 13), dtype=np.int64),
    ],
)
def test_rejects_bad_frames(environment, bad_frames):
    with pytest.raises(FrameShapeError):
        BlockNormalizer().normalize(bad_frames, environment)


def test_rejects_read_only_frames(environment, frames):
    frames.flags.writeable = False
    with pytest.raises(FrameShapeError):
        BlockNormalizer().normalize(frames, environment)


def test_invalid_environment_is_rejected_before_frames_change(make_environment, frames):
    env = make_environment()
    broken = EnvironmentModel(
        env.means, np.zeros_like(env.variances), env.priors, env.corrections, validate=False
    )
    before = frames.copy()

    with pytest.raises(ValueError):
        BlockNormalizer().normalize(frames, broken)
    np.testing.assert_array_equal(frames, before)


@pytest.mark.parametrize(
    "kwargs", [{"numerator": "first"}, {"zero_den_policy": "zero"}, {"block_size": 0}]
)
def test_rejects_bad_options(kwargs, propagating_logs, caplog):
    with caplog.at_level(logging.ERROR, logger="cdcnorm.modeling.base"):
        with pytest.raises(ValueError):
            BlockNormalizer(**kwargs)
    assert any(r.levelno == logging.ERROR for r in caplog.records)


def test_built_from_config():
    cfg = get_cfg()
    cfg.CDCN.NUMERATOR = "skip_first"
    cfg.CDCN.ZERO_DEN_POLICY = "passthrough"
    cfg.CDCN.BLOCK_SIZE = 32

    normalizer = BlockNormalizer(cfg)

    assert normalizer.numerator == "skip_first"
    assert normalizer.zero_den_policy == "passthrough"
    assert normalizer.block_size == 32
    assert normalizer.validate is True


def test_fallback_count_is_logged(propagating_logs, caplog):
    frames = np.full((3, 5), 1e3)

    with caplog.at_level(logging.WARNING, logger="cdcnorm"):
        BlockNormalizer().normalize(frames, degenerate_env())

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "3 of 3 frames had every codeword weight underflow" in warnings[0].getMessage()
