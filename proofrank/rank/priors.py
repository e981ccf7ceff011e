"""
Priors on latent log-strengths.

The Bayesian Bradley-Terry sampler scores every proposal with

.. math::
    \\log p(\\theta \\mid \\text{judgements})
    = \\log p(\\text{judgements} \\mid \\theta) - P(\\theta) + \\text{const},

so a prior only has to supply the penalty :math:`P(\\theta)`, its negative
log-density with additive constants dropped. Both families here are
independent across items and centred on a common location.
"""

from abc import ABC, abstractmethod
from typing import Literal, TypeAlias

import numpy as np

PriorFamily: TypeAlias = Literal["normal", "cauchy"]


class Prior(ABC):
    """Independent prior on every item's log-strength."""

    family: str

    @abstractmethod
    def penalty(self, theta: np.ndarray) -> float:
        """Negative log-prior of ``theta`` (shape ``(L,)``), up to a constant."""

    @abstractmethod
    def describe(self) -> dict:
        """Plain-data parameters, stored alongside cached fits."""


class NormalPrior(Prior):
    """
    Normal prior, ``theta_i ~ N(mean, sd^2)``.

    Args:
        mean: Location shared by all items.
        sd: Positive standard deviation.

    Examples:
        >>> NormalPrior(sd=1.0).penalty(np.array([0.5, -0.5]))
        0.25
    """

    family = "normal"

    def __init__(self, mean: float = 0.0, sd: float = 1.0):
        if not sd > 0:
            raise ValueError("Standard deviation must be positive")
        self.mean = float(mean)
        self.sd = float(sd)

    def penalty(self, theta: np.ndarray) -> float:
        z = (np.asarray(theta, dtype=float) - self.mean) / self.sd
        return float(0.5 * np.dot(z, z))

    def describe(self) -> dict:
        return {"family": self.family, "mean": self.mean, "sd": self.sd}


class CauchyPrior(Prior):
    """
    Cauchy prior, ``theta_i ~ Cauchy(loc, scale)``.

    Its heavy tails let a clearly dominant proof sit far from the rest
    without being pulled back towards ``loc``.

    Args:
        loc: Location shared by all items.
        scale: Positive scale.
    """

    family = "cauchy"

    def __init__(self, loc: float = 0.0, scale: float = 1.0):
        if not scale > 0:
            raise ValueError("Scale must be positive")
        self.loc = float(loc)
        self.scale = float(scale)

    def penalty(self, theta: np.ndarray) -> float:
        z = (np.asarray(theta, dtype=float) - self.loc) / self.scale
        return float(np.sum(np.log1p(z * z)))

    def describe(self) -> dict:
        return {"family": self.family, "loc": self.loc, "scale": self.scale}


_FAMILIES = {
    "normal": lambda scale: NormalPrior(mean=0.0, sd=scale),
    "cauchy": lambda scale: CauchyPrior(loc=0.0, scale=scale),
}


def make_prior(family: PriorFamily, scale: float) -> Prior:
    """
    Zero-centred prior of the named family.

    Raises:
        ValueError: If ``family`` is unknown or ``scale`` is not a positive
            finite number.
    """
    scale = float(scale)
    if not np.isfinite(scale) or scale <= 0.0:
        raise ValueError(f"prior scale must be a positive finite scalar, got {scale}")
    try:
        build = _FAMILIES[family]
    except KeyError:
        raise ValueError(
            f'prior family must be one of: "normal", "cauchy"; got {family!r}'
        ) from None
    return build(scale)


__all__ = [
    "Prior",
    "NormalPrior",
    "CauchyPrior",
    "PriorFamily",
    "make_prior",
]
