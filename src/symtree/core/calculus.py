import logging
import typing

from scipy import integrate

from symtree.core import expression
from symtree.core import numerical
from symtree.core.expression import Expression


logger = logging.getLogger(__name__)


METHODS = ('symbolic', 'numeric')


def definite_integral(
    tree: Expression,
    lower,
    upper,
    variable: typing.Union[str, expression.Variable]=None,
    method: str='symbolic',
) -> numerical.Value:
    """Integrate `tree` over the interval from `lower` to `upper`.

    Parameters
    ----------
    tree : `~expression.Expression`
        The integrand. It may not contain free variables other than
        `variable`.

    lower, upper : number
        The bounds of integration.

    variable : string or `~expression.Variable`, optional
        The variable of integration. Defaults to the configured ambient
        variable.

    method : {'symbolic', 'numeric'}
        Whether to evaluate a symbolic antiderivative at the bounds, or to
        integrate the evaluated integrand with `scipy.integrate.quad`.

    Returns
    -------
    `~numerical.Value`

    Raises
    ------
    `~expression.IntegrationError`
        The symbolic method found no antiderivative.

    `~numerical.NumericTypeError`
        The numeric method encountered a complex value of the integrand.
    """
    v = expression.as_variable(variable)
    if method == 'symbolic':
        antiderivative = tree.integrate(v)
        upper_value = antiderivative.evaluate({v: upper})
        lower_value = antiderivative.evaluate({v: lower})
        return numerical.subtract(upper_value, lower_value)
    if method == 'numeric':
        result, error = integrate.quad(
            lambda t: _real(tree.evaluate({v: t})),
            float(numerical.Value(lower)),
            float(numerical.Value(upper)),
        )
        logger.debug(
            "Quadrature of %s on [%s, %s]: %s (error estimate %s)",
            tree, lower, upper, result, error,
        )
        return numerical.Value(result)
    raise ValueError(
        f"Unknown integration method {method!r}; expected one of {METHODS}"
    ) from None


def _real(value) -> float:
    """Convert an evaluated integrand into a real number for quadrature."""
    value = numerical.Value(value)
    if value.kind == numerical.Kind.COMPLEX:
        raise numerical.NumericTypeError(value.data)
    return float(value)
