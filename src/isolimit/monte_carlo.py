"""
Monte Carlo evaluation of the characteristic limits.

Each trial draws
    n_g ~ Poisson(r_g t_g)
    n_0 ~ Poisson(r_0 t_0 / s),      r_0,sim = s n_0 / t_0
    w_sim ~ Normal(w, w u_rel(w))
and evaluates y = w_sim (n_g / t_g - r_0,sim). The null-hypothesis sample
reuses n_0 and w_sim with a gross count drawn from the background alone,
n_g0 ~ Poisson(r_0 t_g). The decision threshold is the (1 - alpha) quantile
of the null sample; the detection limit needs no resampling and is taken
from the analytical model.

Trials are vectorized in chunks and may be sharded across threads, each
shard owning an independent child generator.

References:
    JCGM 101:2008, Propagation of distributions using a Monte Carlo method
    ISO 11929-2:2019, Characteristic limits, advanced applications
"""

from __future__ import annotations

import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import numpy as np

from isolimit.analytical import evaluate_rates, null_hypothesis_variance
from isolimit.core.errors import CalculationError, ErrorKind
from isolimit.core.models import (
    CanonicalRates,
    MeasurementInput,
    MonteCarloResult,
    MonteCarloStats,
    SensitivityCoefficients,
)
from isolimit.core.statistics import mean_time_between_false_alarms, risk_probability
from isolimit.normalize import normalize_rates

logger = logging.getLogger(__name__)

MIN_SIMULATIONS = 100
# numpy's Poisson sampler rejects means above ~9.2e18
MAX_POISSON_MEAN = 1e18
CI_LOWER_PERCENTILE = 0.025
CI_UPPER_PERCENTILE = 0.975

RandomSource = Union[np.random.Generator, int, None]


@dataclass
class MonteCarloConfig:
    """
    Execution settings of the simulator.

    Attributes
    ----------
    chunk_size : int
        Trials drawn per vectorized batch; cancellation is checked between
        batches
    workers : int
        Number of threads the trials are sharded over
    """

    chunk_size: int = 10_000
    workers: int = 1

    def __post_init__(self):
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")


class CancellationToken:
    """Cooperative cancellation flag shared with a running simulation."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def _simulate_chunk(
    rates: CanonicalRates,
    size: int,
    rng: np.random.Generator,
) -> Tuple[np.ndarray, np.ndarray]:
    w = rates.calibration_factor
    u_w = w * rates.calibration_rel_uncertainty
    scale = rates.background_scale

    n_gross = rng.poisson(rates.r_gross * rates.t_gross, size)
    n_bkg = rng.poisson(rates.r_bkg * rates.t_bkg / scale, size)
    w_sim = rng.normal(w, u_w, size)

    r_bkg_sim = n_bkg * scale / rates.t_bkg
    y = w_sim * (n_gross / rates.t_gross - r_bkg_sim)

    n_gross0 = rng.poisson(rates.r_bkg * rates.t_gross, size)
    y0 = w_sim * (n_gross0 / rates.t_gross - r_bkg_sim)
    return y, y0


def _simulate_shard(
    rates: CanonicalRates,
    n_trials: int,
    rng: np.random.Generator,
    chunk_size: int,
    cancel_token: Optional[CancellationToken],
) -> Optional[Tuple[np.ndarray, np.ndarray]]:
    """Run ``n_trials`` in chunks; ``None`` if cancelled."""
    y_parts: List[np.ndarray] = []
    y0_parts: List[np.ndarray] = []
    remaining = n_trials
    while remaining > 0:
        if cancel_token is not None and cancel_token.cancelled:
            return None
        size = min(chunk_size, remaining)
        y, y0 = _simulate_chunk(rates, size, rng)
        y_parts.append(y)
        y0_parts.append(y0)
        remaining -= size

    if not y_parts:
        return np.empty(0), np.empty(0)
    return np.concatenate(y_parts), np.concatenate(y0_parts)


def _shard_sizes(n_trials: int, workers: int) -> List[int]:
    base, extra = divmod(n_trials, workers)
    return [base + (1 if i < extra else 0) for i in range(workers)]


def simulate(
    rates: CanonicalRates,
    n_trials: int,
    rng: np.random.Generator,
    config: Optional[MonteCarloConfig] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> Optional[Tuple[np.ndarray, np.ndarray]]:
    """Draw ``n_trials`` (y, y0) pairs, returned as two sorted arrays.

    Returns ``None`` when ``cancel_token`` is triggered before completion.
    """
    config = config or MonteCarloConfig()
    workers = min(config.workers, max(n_trials, 1))

    if workers == 1:
        shards = [_simulate_shard(rates, n_trials, rng, config.chunk_size, cancel_token)]
    else:
        child_rngs = rng.spawn(workers)
        sizes = _shard_sizes(n_trials, workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(_simulate_shard, rates, size, child, config.chunk_size, cancel_token)
                for size, child in zip(sizes, child_rngs)
            ]
            shards = [f.result() for f in futures]

    if any(shard is None for shard in shards):
        return None

    y = np.sort(np.concatenate([s[0] for s in shards]))
    y0 = np.sort(np.concatenate([s[1] for s in shards]))
    return y, y0


def sample_statistics(y_sorted: np.ndarray) -> MonteCarloStats:
    """Moments and order statistics of a sorted sample.

    Skewness and kurtosis are the third and fourth central moments divided
    by the corresponding power of the (ddof=1) standard deviation.
    """
    n = len(y_sorted)
    mean = float(np.mean(y_sorted))
    std = float(np.std(y_sorted, ddof=1))

    deviations = y_sorted - mean
    m3 = float(np.mean(deviations**3))
    m4 = float(np.mean(deviations**4))
    skewness = m3 / std**3 if std > 0 else 0.0
    kurtosis = m4 / std**4 if std > 0 else 0.0

    return MonteCarloStats(
        mean=mean,
        std_dev=std,
        median=float(y_sorted[n // 2]),
        min=float(y_sorted[0]),
        max=float(y_sorted[-1]),
        skewness=skewness,
        kurtosis=kurtosis,
        ci_percentile_lower=float(y_sorted[min(math.floor(n * CI_LOWER_PERCENTILE), n - 1)]),
        ci_percentile_upper=float(y_sorted[min(math.floor(n * CI_UPPER_PERCENTILE), n - 1)]),
    )


def run_monte_carlo_simulation(
    params: MeasurementInput,
    rng: RandomSource = None,
    *,
    config: Optional[MonteCarloConfig] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> Union[MonteCarloResult, CalculationError]:
    """
    Monte Carlo counterpart of :func:`isolimit.analytical.calculate_all`.

    Parameters
    ----------
    params : MeasurementInput
        Measurement; ``num_simulations`` trials are run (at least 100)
    rng : numpy.random.Generator or int, optional
        Random source, or a seed for a fresh PCG64 generator
    config : MonteCarloConfig, optional
        Chunking and threading settings
    cancel_token : CancellationToken, optional
        Checked between chunks; cancellation yields ``ErrorKind.CANCELLED``

    Returns
    -------
    MonteCarloResult or CalculationError
    """
    if not math.isfinite(params.num_simulations) or params.num_simulations < MIN_SIMULATIONS:
        return CalculationError(
            ErrorKind.INVALID_INPUT,
            f"At least {MIN_SIMULATIONS} simulations are required, got {params.num_simulations}",
        )
    n_trials = int(params.num_simulations)
    if not (math.isfinite(params.k1alpha) and math.isfinite(params.k1beta)):
        return CalculationError(
            ErrorKind.INVALID_INPUT,
            f"Risk quantiles must be finite (k1alpha={params.k1alpha}, k1beta={params.k1beta})",
        )

    rates = normalize_rates(params)
    if isinstance(rates, CalculationError):
        return rates
    largest_mean = max(
        rates.r_gross * rates.t_gross,
        rates.r_bkg * rates.t_bkg / rates.background_scale,
        rates.r_bkg * rates.t_gross,
    )
    if not largest_mean < MAX_POISSON_MEAN:
        return CalculationError(
            ErrorKind.INVALID_INPUT,
            f"Expected counts {largest_mean:.6g} exceed the Poisson sampler limit {MAX_POISSON_MEAN:.0e}",
        )

    generator = np.random.default_rng(rng)
    logger.info(f"Monte Carlo run: {n_trials} trials, mode {rates.mode.value}")

    samples = simulate(rates, n_trials, generator, config, cancel_token)
    if samples is None:
        logger.info("Monte Carlo run cancelled")
        return CalculationError(ErrorKind.CANCELLED, "Simulation cancelled")
    y_sorted, y0_sorted = samples

    alpha = risk_probability(params.k1alpha)
    threshold_index = min(math.floor(n_trials * (1.0 - alpha)), n_trials - 1)
    y_star = float(y0_sorted[threshold_index])

    stats = sample_statistics(y_sorted)

    analytical = evaluate_rates(rates, params.k1alpha, params.k1beta, params.correlation)
    if isinstance(analytical, CalculationError):
        detection_limit = analytical.kind
        u_0 = math.sqrt(null_hypothesis_variance(rates))
        u_hash = 0.0
    else:
        detection_limit = analytical.detection_limit
        u_0 = analytical.uncertainty_at_zero
        u_hash = analytical.uncertainty_at_detection_limit

    is_effect_present = stats.mean > y_star
    w = rates.calibration_factor

    return MonteCarloResult(
        calculation_method="monteCarlo",
        mode=rates.mode,
        primary_result=stats.mean,
        primary_uncertainty=stats.std_dev,
        decision_threshold=y_star,
        detection_limit=detection_limit,
        is_effect_present=is_effect_present,
        best_estimate=stats.mean if is_effect_present else None,
        best_estimate_uncertainty=stats.std_dev if is_effect_present else None,
        confidence_interval_lower=max(0.0, stats.ci_percentile_lower) if is_effect_present else None,
        confidence_interval_upper=stats.ci_percentile_upper if is_effect_present else None,
        k1alpha=params.k1alpha,
        k1beta=params.k1beta,
        alpha_probability=alpha,
        beta_probability=risk_probability(params.k1beta),
        mean_time_between_false_alarms=mean_time_between_false_alarms(alpha, rates.t_gross, rates.t_bkg),
        uncertainty_at_zero=u_0,
        uncertainty_at_detection_limit=u_hash,
        variance_components=None,
        sensitivity_coefficients=SensitivityCoefficients(
            gross_rate=w,
            background_rate=-w,
            calibration_factor=rates.net_rate,
        ),
        histogram_data=y_sorted,
        num_simulations=n_trials,
        monte_carlo_stats=stats,
    )


__all__ = [
    "MIN_SIMULATIONS",
    "MonteCarloConfig",
    "CancellationToken",
    "simulate",
    "sample_statistics",
    "run_monte_carlo_simulation",
]
