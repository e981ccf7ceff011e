"""Command-line entry point: ``python -m proofrank judgements.csv``."""

import argparse
import logging
import sys

from proofrank.config import AnalysisConfig
from proofrank.pipeline import run_analysis, write_report
from proofrank.utils import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proofrank",
        description=(
            "Compare Bayesian Bradley-Terry, Bradley-Terry, Elo and PageRank "
            "rankings of pairwise judgements."
        ),
    )
    parser.add_argument(
        "csv", help="judgement CSV with study, dimension, Won, Lost, JudgeID"
    )
    parser.add_argument(
        "--out", default="report", help="output directory (default: report)"
    )
    parser.add_argument("--study", help="study to keep (default: 2)")
    parser.add_argument("--dimension", help="dimension to keep (default: rigour)")
    parser.add_argument("--mcmc-iter", dest="mcmc_iter", type=int)
    parser.add_argument("--mcmc-chains", dest="mcmc_chains", type=int)
    parser.add_argument("--mcmc-seed", dest="mcmc_seed", type=int)
    parser.add_argument(
        "--prior-family", dest="prior_family", choices=["normal", "cauchy"]
    )
    parser.add_argument("--prior-scale", dest="prior_scale", type=float)
    parser.add_argument("--btm-max-iter", dest="btm_max_iter", type=int)
    parser.add_argument("--btm-eps", dest="btm_eps", type=float)
    parser.add_argument("--outlier-sd", dest="outlier_sd", type=float)
    parser.add_argument("--elo-runs", dest="elo_runs", type=int)
    parser.add_argument("--elo-k", dest="elo_k", type=float)
    parser.add_argument("--elo-seed", dest="elo_seed", type=int)
    parser.add_argument("--damping", type=float)
    parser.add_argument("--correlation", choices=["pearson", "spearman", "kendall"])
    parser.add_argument("--cache-dir", dest="cache_dir")
    parser.add_argument(
        "--no-cache", action="store_true", help="always refit the Bayesian model"
    )
    parser.add_argument("--log-level", default="INFO")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = AnalysisConfig.from_args(args)
        result = run_analysis(args.csv, config, use_cache=not args.no_cache)
        write_report(result, args.out)
    except (OSError, ValueError, TypeError) as exc:
        logger.error("%s", exc)
        return 1

    outliers = result.btm.outlier_judges()
    logger.info("outlier judges: %s", ", ".join(map(str, outliers)) or "none")
    print(result.table.to_string(index=False, float_format="{:.3f}".format))
    return 0


if __name__ == "__main__":
    sys.exit(main())
