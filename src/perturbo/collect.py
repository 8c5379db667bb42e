'''Coefficient extraction by powers of the perturbation variable'''

import numbers
from typing import Iterable, List, Optional

from .config import config
from .errors import UnsupportedExponent
from .expression import Constant, Expression, Symbol, expand, power, substitute


def _check_power(p) -> int:
    if isinstance(p, bool) or not isinstance(p, numbers.Integral) or p < 0:
        raise UnsupportedExponent(
            f"Requested powers must be non-negative integers, got {p!r}")
    return int(p)


def collect_powers(expr, var: Symbol, powers: Iterable[int],
                   max_power_bound: Optional[int] = None) -> List[Expression]:
    """
    Extract the coefficient of each requested power of ``var``.

    The expression is expanded, every ``var**j`` with
    ``max(powers) < j <= max_power_bound`` is replaced by 0, and the
    coefficient of ``var**i`` is then read off by substituting
    ``var**j -> 1`` for ``j == i`` and ``var**j -> 0`` for the other
    ``j`` in ``1 .. max(powers)``. The terms free of ``var`` are removed
    from every coefficient of positive order; power 0 yields exactly those
    terms.

    Parameters
    ----------
    expr : Expression
        Residual of the perturbed equation (implicitly equal to zero)
    var : Symbol
        Perturbation variable
    powers : iterable of int
        Requested non-negative powers, returned in the same order
    max_power_bound : int, optional
        Truncation knob. Powers above it are not zeroed before extraction:
        they vanish from coefficients of order two and higher but leak
        into the linear coefficient through ``var -> 1``. A bound below
        the degree of the expanded residual therefore corrupts the order-1
        equation, and solving it yields a wrong ``a1`` (and every later
        coefficient built on it). This is not reported as an error, so
        keep the bound at least the degree of the expanded residual.
        Default: config.DEFAULT_MAX_POWER

    Returns
    -------
    list of Expression
        One expanded coefficient equation per requested power

    Examples
    --------
    >>> eps, a1, a2 = symbols("eps a1 a2")
    >>> x = build_series(eps, [a1, a2], base=1)
    >>> collect_powers(x**5 + eps*x - 1, eps, [1, 2])
    """
    if not isinstance(var, Symbol):
        raise TypeError(f"Perturbation variable must be a Symbol, got {var!r}")
    powers = [_check_power(p) for p in powers]
    if not powers:
        return []
    if max_power_bound is None:
        max_power_bound = config.DEFAULT_MAX_POWER
    top = max(powers)

    # discard runaway terms beyond the requested orders
    bounded = expand(expr)
    high = {power(var, j): Constant(0) for j in range(top + 1, max_power_bound + 1)}
    if high:
        bounded = substitute(bounded, high)

    lower = range(1, top + 1)
    residue = expand(substitute(bounded, {power(var, j): Constant(0) for j in lower}))

    coefficients = []
    for i in powers:
        if i == 0:
            coefficients.append(residue)
            continue
        picks = {power(var, j): Constant(1 if j == i else 0) for j in lower}
        coefficients.append(expand(substitute(bounded, picks) - residue))
    return coefficients
