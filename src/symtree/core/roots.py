"""
Roots of polynomials given by their coefficients, highest degree first.

Polynomials up to degree four have closed-form solvers. Higher degrees use the
Durand-Kerner iteration, which refines one guess per root simultaneously and
raises `ConvergenceError` if the guesses have not settled after the configured
number of steps.
"""

import logging
import numbers
import typing

import numpy

import symtree


logger = logging.getLogger(__name__)

_settings = symtree.Environment('roots')
PRECISION = _settings.getfloat('precision')
"""Largest change in any guess at which the iteration has converged."""
MAX_STEPS = _settings.getint('max_steps')
"""Largest number of iterations before giving up."""


Coefficients = typing.Sequence[numbers.Number]


class ConvergenceError(ArithmeticError):
    """The iterative root finder did not converge."""

    def __init__(self, steps: int, change: float) -> None:
        self.steps = steps
        self.change = change

    def __str__(self) -> str:
        return (
            f"Roots did not converge after {self.steps} steps"
            f" (last change {self.change:.3g})"
        )


class DegreeError(ValueError):
    """The coefficients do not describe a polynomial of the expected degree."""
    pass


def clean(z: complex, tolerance: float=None) -> complex:
    """Remove imaginary (or real) parts that are numerical noise."""
    tol = PRECISION if tolerance is None else tolerance
    z = complex(z)
    scale = max(1.0, abs(z))
    real = 0.0 if abs(z.real) < tol * scale else z.real
    imag = 0.0 if abs(z.imag) < tol * scale else z.imag
    return complex(real, imag)


def _csqrt(z) -> complex:
    """The principal square root of any number, as a complex number."""
    return complex(numpy.sqrt(complex(z)))


def _ccbrt(z) -> complex:
    """The principal cube root of any number, as a complex number."""
    z = complex(z)
    if z == 0:
        return 0j
    return z ** (1 / 3)


def linear(a, b) -> typing.List[complex]:
    """The root of a·x + b."""
    if a == 0:
        raise DegreeError("The leading coefficient of a linear must be non-zero")
    return [clean(-complex(b) / complex(a))]


def quadratic(a, b, c) -> typing.List[complex]:
    """The roots of a·x² + b·x + c, from the discriminant."""
    if a == 0:
        raise DegreeError("The leading coefficient of a quadratic must be non-zero")
    a, b, c = complex(a), complex(b), complex(c)
    root = _csqrt(b * b - 4 * a * c)
    return [clean((-b + root) / (2 * a)), clean((-b - root) / (2 * a))]


_UNITY = complex(-0.5, numpy.sqrt(3) / 2)
"""A primitive cube root of unity."""


def cubic(a, b, c, d) -> typing.List[complex]:
    """The roots of a·x³ + b·x² + c·x + d, from Cardano's formula."""
    if a == 0:
        raise DegreeError("The leading coefficient of a cubic must be non-zero")
    a, b, c, d = complex(a), complex(b), complex(c), complex(d)
    delta0 = b * b - 3 * a * c
    delta1 = 2 * b ** 3 - 9 * a * b * c + 27 * a * a * d
    if abs(delta0) < PRECISION and abs(delta1) < PRECISION:
        triple = clean(-b / (3 * a))
        return [triple, triple, triple]
    radical = _csqrt(delta1 * delta1 - 4 * delta0 ** 3)
    plus, minus = (delta1 + radical) / 2, (delta1 - radical) / 2
    C = _ccbrt(plus if abs(plus) >= abs(minus) else minus)
    roots = []
    for k in range(3):
        branch = C * _UNITY ** k
        roots.append(clean(-(b + branch + delta0 / branch) / (3 * a)))
    return roots


def quartic(a, b, c, d, e) -> typing.List[complex]:
    """The roots of a·x⁴ + b·x³ + c·x² + d·x + e, from Ferrari's method.

    The quartic is first reduced to the depressed form y⁴ + p·y² + q·y + r with
    x = y - b/(4a). When q vanishes, the depressed quartic is quadratic in y².
    Otherwise, a root m of the resolvent cubic
    8m³ + 8p·m² + (2p² - 8r)·m - q² = 0 splits it into two quadratics.
    """
    if a == 0:
        raise DegreeError("The leading coefficient of a quartic must be non-zero")
    B, C, D, E = (complex(v) / complex(a) for v in (b, c, d, e))
    p = C - 3 * B * B / 8
    q = D - B * C / 2 + B ** 3 / 8
    r = E - B * D / 4 + B * B * C / 16 - 3 * B ** 4 / 256
    shift = B / 4
    if abs(q) < PRECISION:
        ys = []
        for z in quadratic(1, p, r):
            w = _csqrt(z)
            ys.extend([w, -w])
    else:
        resolvent = cubic(8, 8 * p, 2 * p * p - 8 * r, -q * q)
        m = max(resolvent, key=abs)
        w = _csqrt(2 * m)
        ys = []
        for s in (1, -1):
            root = _csqrt(-(2 * p + 2 * m + s * 2 * q / w))
            ys.extend([(s * w + root) / 2, (s * w - root) / 2])
    return [clean(y - shift) for y in ys]


def durand_kerner(
    coefficients: Coefficients,
    precision: float=None,
    max_steps: int=None,
) -> typing.List[complex]:
    """Approximate all roots at once with the Durand-Kerner iteration.

    Parameters
    ----------
    coefficients : sequence of numbers
        The polynomial coefficients, highest degree first.

    precision : float, optional
        The largest change in any guess at which to stop. Defaults to the
        configured `[roots] precision`.

    max_steps : int, optional
        The largest number of iterations. Defaults to the configured
        `[roots] max_steps`.

    Returns
    -------
    list of complex
        One root per degree. Roots that agree within the cube root of the
        precision are replaced by their mean.

    Raises
    ------
    ConvergenceError
        The guesses did not settle within `max_steps` iterations.

    Notes
    -----
    Guesses that approach a root of multiplicity three or more keep moving by
    much more than `precision`, because rounding error in the value of the
    polynomial dominates there. A guess therefore also counts as settled when
    the value of the polynomial at the guess is within the rounding error of
    evaluating it by Horner's rule.
    """
    precision = PRECISION if precision is None else precision
    max_steps = MAX_STEPS if max_steps is None else max_steps
    leading = complex(coefficients[0])
    if leading == 0:
        raise DegreeError("The leading coefficient must be non-zero")
    monic = numpy.array([complex(c) / leading for c in coefficients])
    degree = len(monic) - 1
    guesses = [complex(0.4, 0.9) ** k for k in range(degree)]
    change = numpy.inf
    for step in range(1, max_steps + 1):
        changes = []
        for i in range(degree):
            z = guesses[i]
            denominator = 1 + 0j
            for j in range(degree):
                if i != j:
                    denominator *= z - guesses[j]
            if denominator == 0:
                denominator = complex(precision, precision)
            update = complex(numpy.polyval(monic, z)) / denominator
            guesses[i] = z - update
            changes.append(abs(update))
        change = max(changes)
        settled = all(
            d < precision or _within_rounding(monic, z)
            for d, z in zip(changes, guesses)
        )
        if settled:
            logger.debug(
                "Durand-Kerner converged in %d steps for degree %d",
                step, degree,
            )
            return [clean(z, precision) for z in _merge(guesses, precision)]
    raise ConvergenceError(max_steps, change)


_EPSILON = numpy.finfo(float).eps
"""The spacing of double-precision numbers near 1."""


def _within_rounding(monic: numpy.ndarray, z: complex) -> bool:
    """True if the polynomial vanishes at `z` up to Horner rounding error."""
    n = len(monic) - 1
    bound = 4 * n * _EPSILON * numpy.polyval(numpy.abs(monic), abs(z))
    return abs(complex(numpy.polyval(monic, z))) <= bound


def _merge(roots: typing.List[complex], precision: float):
    """Replace clusters of nearly equal roots with their mean."""
    merged = list(roots)
    radius = numpy.cbrt(precision)
    for i, z in enumerate(roots):
        cluster = [j for j, w in enumerate(roots) if abs(z - w) < radius]
        if len(cluster) > 1:
            mean = sum(roots[j] for j in cluster) / len(cluster)
            for j in cluster:
                merged[j] = mean
    return merged


def solve(coefficients: Coefficients) -> typing.List[complex]:
    """Find all roots, choosing a solver by the number of coefficients.

    One coefficient (a constant) has no roots. Two to five coefficients use
    the closed-form solvers. Six or more use `durand_kerner`.
    """
    n = len(coefficients)
    if n == 0:
        raise DegreeError("A polynomial needs at least one coefficient")
    if n == 1:
        return []
    if n == 2:
        return linear(*coefficients)
    if n == 3:
        return quadratic(*coefficients)
    if n == 4:
        return cubic(*coefficients)
    if n == 5:
        return quartic(*coefficients)
    return durand_kerner(coefficients)
