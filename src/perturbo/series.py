'''Truncated power-series construction
Perturbation series ansatz and Maclaurin polynomials for sin, cos and exp'''

import math
from fractions import Fraction
from typing import Optional, Sequence

from .expression import (Constant, Expression, Product, Sum, Symbol,
                         as_expression, power)


def build_series(var, coefficients: Sequence[Symbol],
                 base: Optional[Expression] = None) -> Expression:
    """
    Build the truncated series ``base + a1*var + a2*var**2 + ... + an*var**n``.

    Coefficients are indexed from 1: the zeroth-order term is supplied
    through ``base``, the exact solution at the unperturbed parameter value.

    Parameters
    ----------
    var : Expression
        Perturbation variable
    coefficients : sequence of Symbol
        Unknown coefficients ``a1 .. an`` in increasing order
    base : Expression or number, optional
        Zeroth-order term. Default: Constant(0)

    Returns
    -------
    Expression
        Sum whose expansion holds each coefficient multiplied by exactly
        one power of ``var``

    Examples
    --------
    >>> eps = Symbol("eps")
    >>> str(build_series(eps, symbols("a", 2), base=1))
    '1 + a1*eps + a2*eps^2'
    """
    var = as_expression(var)
    terms = [Constant(0) if base is None else as_expression(base)]
    for i, coefficient in enumerate(coefficients, start=1):
        if not isinstance(coefficient, Symbol):
            raise TypeError(
                f"Series coefficients must be Symbols, got {coefficient!r}")
        terms.append(Product((coefficient, power(var, i))))
    return Sum(tuple(terms))


def _maclaurin(x, orders, coefficient):
    x = as_expression(x)
    return Sum(tuple(Product((Constant(coefficient(k)), power(x, k))) for k in orders))


def _check_terms(n):
    if isinstance(n, bool) or not isinstance(n, int) or n < 1:
        raise ValueError(f"Number of series terms must be a positive integer, got {n!r}")


def expand_sin(x, n: int) -> Expression:
    """
    First ``n`` non-zero Maclaurin terms of sin(x).

    ``x - x**3/3! + x**5/5! - ...`` with exact rational coefficients. The
    polynomial is centred at zero, so its accuracy degrades as |x| grows;
    choose ``n`` with the magnitude of ``x`` in mind.
    """
    _check_terms(n)
    return _maclaurin(x, range(1, 2*n, 2),
                      lambda k: Fraction((-1)**(k // 2), math.factorial(k)))


def expand_cos(x, n: int) -> Expression:
    """First ``n`` non-zero Maclaurin terms of cos(x)."""
    _check_terms(n)
    return _maclaurin(x, range(0, 2*n, 2),
                      lambda k: Fraction((-1)**(k // 2), math.factorial(k)))


def expand_exp(x, n: int) -> Expression:
    """First ``n`` Maclaurin terms of exp(x)."""
    _check_terms(n)
    return _maclaurin(x, range(n), lambda k: Fraction(1, math.factorial(k)))
