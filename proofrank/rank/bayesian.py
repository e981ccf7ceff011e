"""
Bayesian Bradley-Terry ranking.

Items carry latent log-strengths :math:`\\theta_i`. Every judgement
"``w`` beats ``l``" contributes a Bradley-Terry likelihood term and the
log-strengths receive an independent prior:

.. math::
    \\Pr(w \\succ l \\mid \\theta)
    = \\frac{\\exp(\\theta_w)}{\\exp(\\theta_w) + \\exp(\\theta_l)},
    \\qquad
    \\theta_i \\sim \\mathcal{N}(0, \\sigma^2).

The posterior is approximated with several random-walk Metropolis-Hastings
chains. :class:`BayesianBTResult` keeps the raw draws and derives every
summary (parameter table, HPDI, convergence diagnostics, pairwise win
probabilities, rank table) as a read-only view over them.
"""

import logging
from dataclasses import asdict, dataclass
from itertools import combinations

import numpy as np
import pandas as pd

from proofrank.utils import rank_scores

from ._base import Comparisons, sigmoid, validate_positive_int
from ._types import RankMethod
from .priors import Prior, PriorFamily, make_prior

logger = logging.getLogger(__name__)

MODEL_TYPES = ("bt",)
TIE_SOLVERS = ("none",)


@dataclass(frozen=True)
class BayesianBTSpec:
    """
    Model specification for the Bayesian Bradley-Terry fit.

    Args:
        model_type: Comparison model. Only ``"bt"`` (Bradley-Terry) is
            supported.
        solve_ties: Tie handling. Only ``"none"`` is supported; the input
            carries no ties.
        iter: Total iterations per chain, warmup included.
        warmup: Warmup iterations per chain. ``None`` uses ``iter // 2``.
        chains: Number of independent chains.
        prior_family: ``"normal"`` or ``"cauchy"`` prior on log-strengths.
        prior_scale: Prior standard deviation (normal) or scale (cauchy).
        seed: Seed for the chains' random generators.
    """

    model_type: str = "bt"
    solve_ties: str = "none"
    iter: int = 3000
    warmup: int | None = None
    chains: int = 4
    prior_family: PriorFamily = "normal"
    prior_scale: float = 3.0
    seed: int = 42

    def __post_init__(self):
        if self.model_type not in MODEL_TYPES:
            raise ValueError(
                f"model_type must be one of {MODEL_TYPES}, got {self.model_type!r}"
            )
        if self.solve_ties not in TIE_SOLVERS:
            raise ValueError(
                f"solve_ties must be one of {TIE_SOLVERS}, got {self.solve_ties!r}"
            )
        # Stored as plain ints so the spec serializes to JSON
        object.__setattr__(
            self, "iter", validate_positive_int("iter", self.iter, min_value=2)
        )
        object.__setattr__(
            self, "chains", validate_positive_int("chains", self.chains)
        )
        if self.warmup is not None:
            warmup = validate_positive_int("warmup", self.warmup, min_value=0)
            object.__setattr__(self, "warmup", warmup)
            if self.warmup >= self.iter:
                raise ValueError(
                    f"warmup must be < iter, got warmup={self.warmup} iter={self.iter}"
                )
        object.__setattr__(
            self, "seed", validate_positive_int("seed", self.seed, min_value=0)
        )
        make_prior(self.prior_family, self.prior_scale)
        object.__setattr__(self, "prior_scale", float(self.prior_scale))

    @property
    def n_warmup(self) -> int:
        return self.iter // 2 if self.warmup is None else int(self.warmup)

    @property
    def n_draws(self) -> int:
        return self.iter - self.n_warmup

    def prior(self) -> Prior:
        return make_prior(self.prior_family, self.prior_scale)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True, eq=False)
class BayesianBTResult:
    """
    Posterior draws of a Bayesian Bradley-Terry fit.

    Args:
        items: Item names aligned with the last axis of ``draws``.
        draws: Post-warmup log-strength draws, shape ``(chains, draws, L)``.
        acceptance: Post-warmup acceptance rate per chain, shape ``(chains,)``.
        spec: Specification the draws were produced with.
    """

    items: tuple[str, ...]
    draws: np.ndarray
    acceptance: np.ndarray
    spec: BayesianBTSpec

    def flat_draws(self) -> np.ndarray:
        """Draws with chains concatenated, shape ``(chains * draws, L)``."""
        return self.draws.reshape(-1, self.draws.shape[-1])

    def scores(self) -> np.ndarray:
        """Posterior mean log-strength per item."""
        return self.flat_draws().mean(axis=0)

    def ranking(self, method: RankMethod = "competition") -> np.ndarray:
        return rank_scores(self.scores())[method]

    def parameters(self, credible_mass: float = 0.95) -> pd.DataFrame:
        """
        Posterior parameter table.

        Args:
            credible_mass: Probability mass of the HPD interval, in ``(0, 1)``.

        Returns:
            DataFrame with columns ``item, mean, median, sd, hpdi_low,
            hpdi_high``.
        """
        flat = self.flat_draws()
        intervals = np.array(
            [hpdi(flat[:, i], credible_mass) for i in range(flat.shape[1])]
        )
        return pd.DataFrame(
            {
                "item": list(self.items),
                "mean": flat.mean(axis=0),
                "median": np.median(flat, axis=0),
                "sd": flat.std(axis=0, ddof=1),
                "hpdi_low": intervals[:, 0],
                "hpdi_high": intervals[:, 1],
            }
        )

    def diagnostics(self) -> pd.DataFrame:
        """Split R-hat and effective sample size per item."""
        return pd.DataFrame(
            {
                "item": list(self.items),
                "rhat": [
                    split_rhat(self.draws[:, :, i]) for i in range(len(self.items))
                ],
                "ess": [
                    effective_sample_size(self.draws[:, :, i])
                    for i in range(len(self.items))
                ],
            }
        )

    def win_probabilities(
        self, pairs: list[tuple[str, str]] | None = None
    ) -> pd.DataFrame:
        """
        Posterior mean probability that ``item_i`` beats ``item_j``.

        Args:
            pairs: Item-name pairs to report. ``None`` reports every unordered
                pair once.

        Returns:
            DataFrame with columns ``item_i, item_j, i_beats_j, j_beats_i``.
        """
        index = {name: k for k, name in enumerate(self.items)}
        if pairs is None:
            pairs = list(combinations(self.items, 2))
        unknown = sorted({name for pair in pairs for name in pair} - set(index))
        if unknown:
            raise ValueError(f"unknown items: {unknown}")

        flat = self.flat_draws()
        rows = []
        for a, b in pairs:
            p = float(sigmoid(flat[:, index[a]] - flat[:, index[b]]).mean())
            rows.append((a, b, p, 1.0 - p))
        return pd.DataFrame(rows, columns=["item_i", "item_j", "i_beats_j", "j_beats_i"])

    def rank_table(self) -> pd.DataFrame:
        """Posterior distribution of each item's rank (1 is strongest)."""
        flat = self.flat_draws()
        ranks = np.argsort(np.argsort(-flat, axis=1), axis=1) + 1
        table = pd.DataFrame(
            {
                "item": list(self.items),
                "median_rank": np.median(ranks, axis=0),
                "mean_rank": ranks.mean(axis=0),
                "sd_rank": ranks.std(axis=0, ddof=1),
            }
        )
        return table.sort_values("mean_rank", kind="stable").reset_index(drop=True)


def fit_bayesian_bt(
    comparisons: Comparisons, spec: BayesianBTSpec | None = None
) -> BayesianBTResult:
    """
    Fit a Bayesian Bradley-Terry model with Metropolis-Hastings.

    Method context:
        Each chain starts from a random point in ``[-2, 2]^L`` and performs
        random-walk Metropolis updates of the full log-strength vector. The
        proposal scale is tuned on windows of the warmup phase towards an
        acceptance rate between 0.15 and 0.40 and frozen afterwards. Chains
        use independent generators spawned from ``spec.seed`` so a fit is
        reproducible.

    Args:
        comparisons: Judgements to fit. Must contain at least one comparison.
        spec: Model specification; defaults to :class:`BayesianBTSpec()`.

    Returns:
        :class:`BayesianBTResult` with post-warmup draws.

    Formula:
        .. math::
            \\log p(\\theta\\mid W) =
            \\sum_{c} \\log\\sigma(\\theta_{w_c}-\\theta_{l_c})
            - P(\\theta) + \\text{const}

    References:
        Bradley, R. A., & Terry, M. E. (1952). Rank Analysis of Incomplete
        Block Designs: I. The Method of Paired Comparisons. Biometrika.
        https://doi.org/10.1093/biomet/39.3-4.324

        Metropolis, N., et al. (1953). Equation of State Calculations by Fast
        Computing Machines. The Journal of Chemical Physics.
        https://doi.org/10.1063/1.1699114

        Issa Mattos, D., & Silva Ramos, É. M. (2022). Bayesian paired
        comparison with the bpcs package. Behavior Research Methods.
        https://doi.org/10.3758/s13428-021-01714-2

    Examples:
        >>> from proofrank.rank import Comparisons, BayesianBTSpec
        >>> comps = Comparisons.from_names(["A", "A", "B"], ["B", "C", "C"])
        >>> result = fit_bayesian_bt(comps, BayesianBTSpec(iter=400, chains=2))
        >>> result.draws.shape
        (2, 200, 3)
    """
    spec = BayesianBTSpec() if spec is None else spec
    if comparisons.n_comparisons < 1:
        raise ValueError("Need at least 1 comparison to fit")

    L = comparisons.n_items
    prior = spec.prior()
    winner, loser = comparisons.winner, comparisons.loser

    def log_posterior(theta):
        diff = theta[winner] - theta[loser]
        # log P(w beats l) = -log(1 + exp(-(θ_w - θ_l)))
        return float(-np.logaddexp(0.0, -diff).sum()) - prior.penalty(theta)

    logger.info(
        "fitting Bayesian Bradley-Terry: %d items, %d comparisons, "
        "%d chains x %d iterations",
        L,
        comparisons.n_comparisons,
        spec.chains,
        spec.iter,
    )

    seeds = np.random.SeedSequence(int(spec.seed)).spawn(spec.chains)
    draws = np.empty((spec.chains, spec.n_draws, L), dtype=float)
    acceptance = np.empty(spec.chains, dtype=float)
    for chain, chain_seed in enumerate(seeds):
        rng = np.random.default_rng(chain_seed)
        draws[chain], acceptance[chain] = _run_chain(
            log_posterior, L, spec.iter, spec.n_warmup, rng
        )
        logger.debug(
            "chain %d finished, acceptance rate %.3f", chain, acceptance[chain]
        )

    result = BayesianBTResult(
        items=comparisons.items, draws=draws, acceptance=acceptance, spec=spec
    )
    logger.info("Bayesian Bradley-Terry fit finished")
    return result


def _run_chain(log_posterior, L, n_iter, n_warmup, rng, window=100):
    """Run one adaptive random-walk Metropolis chain."""
    theta_current = rng.uniform(-2.0, 2.0, L)
    log_post_current = log_posterior(theta_current)

    samples = np.empty((n_iter - n_warmup, L), dtype=float)
    proposal_std = 0.1
    accepted_window = 0
    accepted_sampling = 0

    for iteration in range(n_iter):
        theta_proposed = theta_current + rng.normal(0, proposal_std, L)
        log_post_proposed = log_posterior(theta_proposed)
        log_accept_prob = log_post_proposed - log_post_current

        if np.log(rng.random()) < min(log_accept_prob, 0.0):
            theta_current = theta_proposed
            log_post_current = log_post_proposed
            if iteration < n_warmup:
                accepted_window += 1
            else:
                accepted_sampling += 1

        if iteration >= n_warmup:
            samples[iteration - n_warmup] = theta_current
        elif (iteration + 1) % window == 0:
            # Adaptive proposal tuning, warmup only
            accept_rate = accepted_window / window
            if accept_rate < 0.15:
                proposal_std *= 0.8
            elif accept_rate > 0.40:
                proposal_std *= 1.2
            accepted_window = 0

    return samples, accepted_sampling / max(n_iter - n_warmup, 1)


def hpdi(samples: np.ndarray, credible_mass: float = 0.95) -> tuple[float, float]:
    """
    Highest posterior density interval of a 1D sample.

    Args:
        samples: Posterior draws of one parameter.
        credible_mass: Probability mass of the interval, in ``(0, 1)``.

    Returns:
        ``(low, high)`` of the narrowest interval holding ``credible_mass``
        of the sorted draws.
    """
    credible_mass = float(credible_mass)
    if not (0.0 < credible_mass < 1.0):
        raise ValueError("credible_mass must be in (0, 1)")
    sorted_samples = np.sort(np.asarray(samples, dtype=float).ravel())
    n = sorted_samples.shape[0]
    if n == 0:
        raise ValueError("samples must not be empty")
    width = max(int(np.floor(credible_mass * n)), 1)
    if width >= n:
        return float(sorted_samples[0]), float(sorted_samples[-1])
    spans = sorted_samples[width:] - sorted_samples[: n - width]
    start = int(np.argmin(spans))
    return float(sorted_samples[start]), float(sorted_samples[start + width])


def split_rhat(x: np.ndarray) -> float:
    """
    Split-chain potential scale reduction factor.

    Args:
        x: Draws of one parameter, shape ``(chains, draws)``.

    Returns:
        R-hat, or ``nan`` when chains are too short or constant.
    """
    x = np.asarray(x, dtype=float)
    n = x.shape[1]
    half = n // 2
    if half < 2:
        return float("nan")
    split = np.concatenate([x[:, :half], x[:, n - half :]], axis=0)
    n_split = split.shape[1]
    within = split.var(axis=1, ddof=1).mean()
    if within <= 0.0:
        return float("nan")
    between = n_split * split.mean(axis=1).var(ddof=1)
    var_plus = (n_split - 1) / n_split * within + between / n_split
    return float(np.sqrt(var_plus / within))


def _autocovariance(x: np.ndarray) -> np.ndarray:
    n = x.shape[0]
    centered = x - x.mean()
    size = 2 ** int(np.ceil(np.log2(2 * n)))
    spectrum = np.fft.rfft(centered, size)
    return np.fft.irfft(spectrum * np.conjugate(spectrum), size)[:n] / n


def effective_sample_size(x: np.ndarray) -> float:
    """
    Effective sample size with Geyer's initial positive sequence.

    Args:
        x: Draws of one parameter, shape ``(chains, draws)``.

    Returns:
        Effective number of independent draws across all chains.

    References:
        Gelman, A., et al. (2013). Bayesian Data Analysis (3rd ed.), 11.5.
        https://doi.org/10.1201/b16018
    """
    x = np.asarray(x, dtype=float)
    m, n = x.shape
    if n < 4:
        return float(m * n)

    acov = np.array([_autocovariance(chain) for chain in x])
    mean_var = acov[:, 0].mean() * n / (n - 1)
    var_plus = mean_var * (n - 1) / n
    if m > 1:
        var_plus += x.mean(axis=1).var(ddof=1)
    if var_plus <= 0.0:
        return float(m * n)

    rho = 1.0 - (mean_var - acov.mean(axis=0)) / var_plus
    rho[0] = 1.0

    tau = -1.0
    for t in range(0, n - 1, 2):
        pair = rho[t] + rho[t + 1]
        if pair < 0.0:
            break
        tau += 2.0 * pair
    tau = max(tau, 1.0 / np.log10(m * n))
    return float(m * n / tau)


__all__ = [
    "BayesianBTSpec",
    "BayesianBTResult",
    "fit_bayesian_bt",
    "hpdi",
    "split_rhat",
    "effective_sample_size",
]
