from __future__ import annotations

import numpy as np
import pytest

from proofrank import rank


def test_prior_is_abstract() -> None:
    with pytest.raises(TypeError):
        rank.Prior()


def test_prior_penalty_values() -> None:
    theta = np.array([2.0, -2.0], dtype=float)

    normal = rank.NormalPrior(mean=0.0, sd=1.0)
    assert normal.penalty(np.array([0.5, -0.5])) == pytest.approx(0.25)

    cauchy = rank.CauchyPrior(loc=0.0, scale=1.0)
    assert cauchy.penalty(theta) == pytest.approx(2.0 * np.log(5.0))


@pytest.mark.parametrize(
    ("ctor", "kwargs", "match"),
    [
        (rank.NormalPrior, {"sd": 0.0}, "Standard deviation must be positive"),
        (rank.CauchyPrior, {"scale": 0.0}, "Scale must be positive"),
    ],
)
def test_prior_constructor_validation_errors(ctor, kwargs, match: str) -> None:
    with pytest.raises(ValueError, match=match):
        ctor(**kwargs)


def test_make_prior_uses_scale_as_standard_deviation() -> None:
    prior = rank.make_prior("normal", 3.0)
    assert isinstance(prior, rank.NormalPrior)
    assert prior.describe() == {"family": "normal", "mean": 0.0, "sd": 3.0}

    cauchy = rank.make_prior("cauchy", 2.5)
    assert cauchy.describe() == {"family": "cauchy", "loc": 0.0, "scale": 2.5}


@pytest.mark.parametrize(
    ("family", "scale", "match"),
    [
        ("laplace", 1.0, "prior family must be one of"),
        ("normal", 0.0, "prior scale must be a positive finite scalar"),
        ("normal", float("inf"), "prior scale must be a positive finite scalar"),
    ],
)
def test_make_prior_validation(family: str, scale: float, match: str) -> None:
    with pytest.raises(ValueError, match=match):
        rank.make_prior(family, scale)
