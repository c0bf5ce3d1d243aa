"""Gamma, Beta and PERT sampling used by the SimRisk Monte Carlo engine.

The samplers draw from a caller-supplied uniform source (see
:mod:`simrisk.rng`) instead of NumPy's global generator so that a whole run is
reproducible from a single integer seed. Closed-form theory for the PERT
distribution is delegated to :mod:`scipy.stats`.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
import scipy.stats as st

from simrisk.errors import InvalidRangeError

DEGENERATE_RANGE = 1e-10
"""Ranges narrower than this are treated as a constant value."""

Source = Callable[[], float]


def _validate_positive(value: float, name: str) -> None:
    if not value > 0:
        raise ValueError(f"{name} must be positive.")


def _standard_normal(source: Source) -> float:
    """Polar (Marsaglia) standard normal deviate from two uniforms."""
    while True:
        u1 = 2.0 * source() - 1.0
        u2 = 2.0 * source() - 1.0
        s = u1 * u1 + u2 * u2
        if 0.0 < s < 1.0:
            return u1 * math.sqrt(-2.0 * math.log(s) / s)


def _gamma_marsaglia_tsang(k: float, theta: float, source: Source) -> float:
    d = k - 1.0 / 3.0
    c = 1.0 / math.sqrt(9.0 * d)
    while True:
        x = _standard_normal(source)
        v = 1.0 + c * x
        if v <= 0.0:
            continue
        v = v * v * v
        u = source()
        x2 = x * x
        if u < 1.0 - 0.0331 * x2 * x2:
            return d * v * theta
        # log(0) is -inf, which always accepts
        if u == 0.0 or math.log(u) < 0.5 * x2 + d * (1.0 - v + math.log(v)):
            return d * v * theta


def gamma_sample(k: float, theta: float, source: Source) -> float:
    """Draw a Gamma(``k``, ``theta``) deviate.

    Marsaglia-Tsang rejection sampling for ``k >= 1``. Shapes below one are
    boosted: ``Gamma(k) = Gamma(1 + k) * u**(1/k)``, with ``u`` drawn before
    the boosted sample.

    Parameters
    ----------
    k : float
        Shape, strictly positive.
    theta : float
        Scale, strictly positive.
    source : callable
        Zero-argument callable returning uniforms in ``[0, 1]``.

    Returns
    -------
    float
        A non-negative Gamma deviate.

    Raises
    ------
    ValueError
        If ``k`` or ``theta`` is not positive.
    """
    _validate_positive(k, "Shape")
    _validate_positive(theta, "Scale")
    if k < 1.0:
        u = source()
        return _gamma_marsaglia_tsang(1.0 + k, theta, source) * u ** (1.0 / k)
    return _gamma_marsaglia_tsang(k, theta, source)


def beta_sample(alpha: float, beta: float, source: Source) -> float:
    """Draw a Beta(``alpha``, ``beta``) deviate as ``g1 / (g1 + g2)``.

    Returns 0.5 when both Gamma draws are exactly zero.
    """
    _validate_positive(alpha, "Alpha")
    _validate_positive(beta, "Beta")
    g1 = gamma_sample(alpha, 1.0, source)
    g2 = gamma_sample(beta, 1.0, source)
    total = g1 + g2
    if total == 0:
        return 0.5
    return g1 / total


@dataclass(frozen=True)
class PertParams:
    """Beta shape parameters for one item, or a constant marker.

    Attributes
    ----------
    alpha, beta : float
        Beta shapes; ``0.0`` when the item is constant.
    is_constant : bool
        ``True`` when ``b - a`` collapses below :data:`DEGENERATE_RANGE`.
    constant_value : float, optional
        The value every sample takes when ``is_constant`` is set.
    """

    alpha: float = 0.0
    beta: float = 0.0
    is_constant: bool = False
    constant_value: Optional[float] = None


def pert_params(a: float, m: float, b: float) -> PertParams:
    """Convert a (min, mode, max) triple into PERT Beta shapes.

    ``alpha = 1 + 4(m - a)/(b - a)`` and ``beta = 1 + 4(b - m)/(b - a)``, which
    put the mean at ``(a + 4m + b)/6``.

    Raises
    ------
    InvalidRangeError
        If the range is not degenerate and ``a <= m <= b`` does not hold.
    """
    if abs(b - a) < DEGENERATE_RANGE:
        return PertParams(is_constant=True, constant_value=a)
    if not (a <= m <= b):
        raise InvalidRangeError(f"Invalid values: a ({a}) <= m ({m}) <= b ({b}) does not hold.", triple=(a, m, b))
    width = b - a
    return PertParams(alpha=1.0 + 4.0 * (m - a) / width, beta=1.0 + 4.0 * (b - m) / width)


def pert_mean(a: float, m: float, b: float) -> float:
    """Classic PERT point estimate ``(a + 4m + b) / 6``."""
    return (a + 4.0 * m + b) / 6.0


class distribution:
    """Lightweight wrapper around SciPy distributions.

    Concrete distributions inherit from this base to expose a common API for
    sampling and computing summary statistics.
    """

    def __init__(self):
        self.params = None
        self.dist_type = None
        self.dist = None

    def __str__(self):
        name = getattr(self, "dist_type", None) or self.__class__.__name__
        params = getattr(self, "params", None)
        if params is None:
            return f"dist.{name}"
        params_str = ", ".join(f"{p:g}" if isinstance(p, (int, float)) else str(p) for p in params)
        return f"dist.{name}({params_str})"

    __repr__ = __str__

    def sample(self):
        """Draw a single random variate from the distribution."""
        return self.dist.rvs()

    def samples(self, n):
        """Draw ``n`` random variates from the distribution."""
        return self.dist.rvs(n)

    def percentile(self, q):
        """Return the value at percentile ``q`` (0–100)."""
        return self.dist.ppf(q / 100)

    def pdf(self, x):
        """Evaluate the probability density function at ``x``."""
        return self.dist.pdf(x)

    def cdf(self, x):
        """Evaluate the cumulative distribution function at ``x``."""
        return self.dist.cdf(x)

    def mean(self):
        """Return the distribution mean."""
        return self.dist.mean()

    def var(self):
        """Return the distribution variance."""
        return self.dist.var()

    def std(self):
        """Return the distribution standard deviation."""
        return self.dist.std()


class pert(distribution):
    """
    Defines a PERT distribution: a Beta rescaled to ``[a, b]``.
    """

    def __init__(self, a, m, b):
        """
        Initializes the PERT distribution.

        Parameters
        -----------
        a : float
            The minimum of the PERT distribution.
        m : float
            The most likely value.
        b : float
            The maximum of the PERT distribution.
        """
        self.dist_type = 'pert'
        self.params = [a, m, b]
        self.shape = pert_params(a, m, b)
        if self.shape.is_constant:
            raise InvalidRangeError("PERT distribution needs a < b.", triple=(a, m, b))
        self.dist = st.beta(self.shape.alpha, self.shape.beta, loc=a, scale=b - a)

    def sample(self, source: Optional[Source] = None):
        """Draw one variate, from ``source`` when given, else from SciPy."""
        if source is None:
            return self.dist.rvs()
        a, _, b = self.params
        return a + (b - a) * beta_sample(self.shape.alpha, self.shape.beta, source)

    def samples(self, n, source: Optional[Source] = None):
        """Draw ``n`` variates, from ``source`` when given, else from SciPy."""
        if source is None:
            return self.dist.rvs(n)
        return np.array([self.sample(source) for _ in range(n)])


def make_pert(a: float, m: float, b: float) -> "pert":
    """Create a PERT distribution with validation."""
    if a >= b:
        raise InvalidRangeError("Lower bound must be less than upper bound.", triple=(a, m, b))
    if not (a <= m <= b):
        raise InvalidRangeError("Mode must lie between lower and upper bounds.", triple=(a, m, b))
    return pert(a, m, b)
