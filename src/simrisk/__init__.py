"""SimRisk estimates the distribution of a total cost or schedule built from independent PERT line items. It includes rng (seeded uniform stream), dist (Gamma/Beta/PERT sampling), mcs (Monte Carlo loop), stats (descriptive statistics), tornado (variance decomposition) and report modules.
"""
from simrisk.dist import *
from simrisk.errors import (
    EmptyInputError,
    InvalidConfigurationError,
    InvalidRangeError,
    NaNResultError,
    RangeToleranceWarning,
    SimRiskError,
)
from simrisk.log_cfg import log_config, logger
from simrisk.mcs import Item, RunConfig, SimulationResult, item_totals, make_items, monte_carlo
from simrisk.report import collect_run_data
from simrisk.rng import XorShift32, make_source
from simrisk.runner import run
from simrisk.stats import final_metrics, histogram, percentile, probability_at_or_below, statistics
from simrisk.tornado import contributions

__version__ = "1.0.0"
