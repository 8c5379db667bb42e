'''Perturbation problem driver
PerturbationProblem and PerturbationSolution class definitions'''

import numbers
from typing import Callable, Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .collect import collect_powers
from .expression import (Expression, Symbol, as_expression, evaluate, expand,
                         free_symbols, substitute, symbols)
from .lowering import CompiledExpression, compile_expression
from .series import build_series
from .solve import CoefficientAssignment, solve_coefficients


class PerturbationProblem:
    """
    Equation ``F(x, eps) = 0`` solved by a truncated power series in ``eps``.

    The unknown is replaced by ``base + a1*eps + ... + an*eps**n``, the
    residual is expanded and sliced into one equation per power of ``eps``,
    and the coefficients are resolved in increasing order.

    Parameters
    ----------
    equation : callable
        Maps the series expression ``x`` to the residual ``F(x, eps)``
    var : Symbol
        Perturbation variable ``eps``
    order : int
        Truncation order ``n`` (number of unknown coefficients)
    base : Expression or number, optional
        Exact solution at ``eps = 0``. Default: 0
    coefficient_name : str, optional
        Stem for the unknown coefficients ``a1 .. an``. Default: "a"
    max_power_bound : int, optional
        Truncation knob forwarded to collect_powers().
        Default: config.DEFAULT_MAX_POWER

    Examples
    --------
    >>> eps = Symbol("eps")
    >>> problem = PerturbationProblem(lambda x: x**5 + eps*x - 1, eps, 2, base=1)
    >>> solution = problem.solve()
    >>> solution(1.0)
    0.76

    Notes
    -----
    - PerturbationProblem is immutable; the solution is computed once and
      cached
    - Expansion cost grows combinatorially with ``order`` and with the
      polynomial degree of the residual
    """
    # ========== CONSTRUCTION ==========
    def __init__(
        self,
        equation: Callable[[Expression], Expression],
        var: Symbol,
        order: int,
        base=None,
        coefficient_name: str = "a",
        max_power_bound: Optional[int] = None
    ):
        if not callable(equation):
            raise TypeError("equation must be callable as equation(x)")
        if not isinstance(var, Symbol):
            raise TypeError(f"Perturbation variable must be a Symbol, got {var!r}")
        if isinstance(order, bool) or not isinstance(order, numbers.Integral) or order < 1:
            raise ValueError(f"Order must be a positive integer, got {order!r}")
        if max_power_bound is not None and max_power_bound < order:
            raise ValueError(
                f"max_power_bound ({max_power_bound}) must be at least the order ({order})")

        self._var = var
        self._order = int(order)
        self._base = None if base is None else as_expression(base)
        self._max_power_bound = max_power_bound
        self._unknowns = symbols(coefficient_name, self._order)

        # unknown names must not shadow the variable or base parameters
        taken = {var} | (free_symbols(self._base) if self._base is not None else set())
        clashes = taken & set(self._unknowns)
        if clashes:
            raise ValueError(
                f"Coefficient names clash with existing symbols: "
                f"{sorted(s.name for s in clashes)}; choose another coefficient_name")

        self._series = build_series(var, self._unknowns, self._base)
        self._residual = as_expression(equation(self._series))
        self._solution = None

    # ========== PROPERTY ACCESS ==========
    @property
    def var(self) -> Symbol:
        return self._var

    @property
    def order(self) -> int:
        return self._order

    @property
    def unknowns(self) -> Tuple[Symbol, ...]:
        return self._unknowns

    @property
    def series(self) -> Expression:
        """Series ansatz substituted for the unknown."""
        return self._series

    @property
    def residual(self) -> Expression:
        """Equation residual with the series substituted (unexpanded)."""
        return self._residual

    # ========== SOLVING ==========
    def coefficient_equations(self):
        """Coefficient equations for powers ``1 .. order`` of the variable."""
        return collect_powers(self._residual, self._var,
                              range(1, self._order + 1), self._max_power_bound)

    def solve(self) -> "PerturbationSolution":
        """
        Resolve the series coefficients.

        Returns
        -------
        PerturbationSolution

        Raises
        ------
        LinearSolveFailure
            If the coefficient equations are not linear-triangular
        """
        if self._solution is None:
            assignment = solve_coefficients(self.coefficient_equations(), self._unknowns)
            closed_form = expand(substitute(self._series, dict(assignment)))
            self._solution = PerturbationSolution(self._var, assignment, closed_form)
        return self._solution

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        return (f"PerturbationProblem(var={self._var.name}, order={self._order}, "
                f"base={self._base})")


class PerturbationSolution:
    """
    Closed-form truncated series solution of a perturbation problem.

    Attributes:
        var: Perturbation variable
        assignment: Resolved coefficient values
        closed_form: Expanded series with the coefficients substituted
        parameters: Free symbols other than ``var``, sorted by name
    """
    # ========== CONSTRUCTION ==========
    def __init__(self, var: Symbol, assignment: CoefficientAssignment,
                 closed_form: Expression):
        self._var = var
        self._assignment = assignment
        self._closed_form = closed_form
        self._parameters = tuple(sorted(free_symbols(closed_form) - {var},
                                        key=lambda s: s.name))
        self._compiled = None

    # ========== PROPERTY ACCESS ==========
    @property
    def var(self) -> Symbol:
        return self._var

    @property
    def assignment(self) -> CoefficientAssignment:
        return self._assignment

    @property
    def closed_form(self) -> Expression:
        return self._closed_form

    @property
    def parameters(self) -> Tuple[Symbol, ...]:
        return self._parameters

    # ========== EVALUATION ==========
    def evaluate(self, eps: Union[float, np.ndarray, list], **params):
        """
        Evaluate the closed form at perturbation value(s).

        Parameters:
            eps: Perturbation value or array of values
            **params: Values for the free parameters, by symbol name

        Returns:
            np.float64 or np.ndarray
        """
        bindings: Dict[str, object] = dict(params)
        bindings[self._var.name] = eps
        return evaluate(self._closed_form, bindings)

    def __call__(self, eps, **params):
        """Syntactic sugar for .evaluate(eps, **params)."""
        return self.evaluate(eps, **params)

    def to_dataframe(self, eps_values: Union[np.ndarray, list], **params) -> pd.DataFrame:
        """
        Export the solution sampled at perturbation values to a DataFrame.

        Parameters:
            eps_values: Perturbation values to evaluate
            **params: Scalar values for the free parameters, by symbol name

        Returns:
            DataFrame with a column named after the perturbation variable,
            one column per parameter and the solution column 'x'
        """
        eps_values = np.asarray(eps_values, dtype=float)
        x = np.broadcast_to(self.evaluate(eps_values, **params), eps_values.shape)
        data = {self._var.name: eps_values}
        for name, value in params.items():
            data[name] = np.broadcast_to(np.asarray(value, dtype=float), eps_values.shape)
        data['x'] = x
        return pd.DataFrame(data)

    def compile(self) -> CompiledExpression:
        """
        Compile the closed form with heyoka.

        The compiled function takes ``(eps, *parameters)`` in the order of
        the ``parameters`` property. Compilation happens once and is cached.
        """
        if self._compiled is None:
            self._compiled = compile_expression(
                self._closed_form, (self._var,) + self._parameters)
        return self._compiled

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        return f"PerturbationSolution({self._var.name}: {self._closed_form})"
