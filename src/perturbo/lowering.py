'''Lowering of perturbo expressions to heyoka
Compiled functions for fast repeated evaluation of closed-form solutions'''

import operator
from functools import reduce
from typing import Dict, Sequence

import heyoka as hy
import numpy as np

from .errors import UnresolvedSymbol
from .expression import Constant, Expression, Power, Product, Sum, Symbol


def to_heyoka(expr: Expression, variables: Dict[Symbol, "hy.expression"]):
    """
    Convert an expression to a heyoka expression.

    Parameters
    ----------
    expr : Expression
    variables : dict
        Maps each free Symbol to a heyoka variable (see hy.make_vars)

    Returns
    -------
    hy.expression

    Raises
    ------
    UnresolvedSymbol
        If a free symbol has no heyoka counterpart
    """
    if isinstance(expr, Constant):
        return hy.expression(float(expr.value))
    if isinstance(expr, Symbol):
        if expr not in variables:
            raise UnresolvedSymbol(expr)
        return variables[expr]
    if isinstance(expr, Sum):
        return reduce(operator.add, (to_heyoka(t, variables) for t in expr.terms),
                      hy.expression(0.))
    if isinstance(expr, Product):
        return reduce(operator.mul, (to_heyoka(f, variables) for f in expr.factors),
                      hy.expression(1.))
    if isinstance(expr, Power):
        return to_heyoka(expr.base, variables)**expr.exponent
    raise TypeError(f"Unknown expression node {type(expr).__name__}")


class CompiledExpression:
    """
    Expression compiled to native code through heyoka's cfunc.

    Call with one value (scalar or array) per variable, in the order given
    at compilation; array arguments are broadcast against each other.

    Examples
    --------
    >>> f = compile_expression(solution.closed_form, [eps])
    >>> f(np.linspace(0, 1, 11))
    """
    def __init__(self, cfunc, variables: Sequence[Symbol]):
        self._cfunc = cfunc
        self._variables = tuple(variables)

    @property
    def variables(self):
        return self._variables

    def __call__(self, *values):
        if len(values) != len(self._variables):
            raise ValueError(
                f"Expected {len(self._variables)} values for "
                f"{[v.name for v in self._variables]}, got {len(values)}")
        arrays = np.broadcast_arrays(*[np.asarray(v, dtype=float) for v in values])
        shape = arrays[0].shape
        # cfunc batch mode takes an (n_vars, n_points) array
        inputs = np.ascontiguousarray(np.stack([a.ravel() for a in arrays]))
        outputs = self._cfunc(inputs)[0]
        if shape == ():
            return np.float64(outputs[0])
        return outputs.reshape(shape)

    def __repr__(self):
        return f"CompiledExpression(variables={[v.name for v in self._variables]})"


def compile_expression(expr: Expression, variables: Sequence[Symbol]) -> CompiledExpression:
    """
    Compile an expression into a heyoka cfunc.

    Parameters
    ----------
    expr : Expression
    variables : sequence of Symbol
        Argument order of the compiled function; must cover every free
        symbol of ``expr``

    Returns
    -------
    CompiledExpression
    """
    variables = list(variables)
    if not variables:
        raise ValueError("At least one variable is required for compilation")
    hy_vars = hy.make_vars(*[v.name for v in variables])
    if len(variables) == 1:
        hy_vars = [hy_vars]
    lowered = to_heyoka(expr, dict(zip(variables, hy_vars)))
    cfunc = hy.cfunc([lowered], vars=list(hy_vars))
    return CompiledExpression(cfunc, variables)
