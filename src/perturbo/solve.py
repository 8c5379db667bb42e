'''Forward-substitution solver for triangular coefficient equations'''

from collections.abc import Mapping
from typing import Sequence

from .errors import LinearSolveFailure, ShapeMismatch
from .expression import (Constant, Expression, Product, Symbol, _reciprocal,
                         coefficients_in, expand, free_symbols, substitute)
from .utils import validation_error


class CoefficientAssignment(Mapping):
    """
    Write-once mapping from unknown coefficients to resolved expressions.

    Iteration follows the order in which unknowns were resolved. Values
    may reference free parameters (e.g. a mean anomaly ``M``) but never
    another unknown, also when a non-triangular system is solved with
    config.STRICT_VALIDATION disabled.
    """
    def __init__(self):
        self._values = {}

    def assign(self, unknown: Symbol, value: Expression):
        """Record a resolved value; reassigning an unknown raises ValueError."""
        if unknown in self._values:
            raise ValueError(f"Coefficient '{unknown}' is already assigned")
        self._values[unknown] = value

    def __getitem__(self, unknown):
        return self._values[unknown]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        items = ", ".join(f"{k}: {v}" for k, v in self._values.items())
        return f"CoefficientAssignment({{{items}}})"


def solve_coefficients(equations: Sequence[Expression],
                       unknowns: Sequence[Symbol]) -> CoefficientAssignment:
    """
    Solve a triangular sequence of coefficient equations.

    Equation ``i`` (implicitly equal to zero) must introduce ``unknowns[i]``
    linearly once the values of ``unknowns[:i]`` are substituted. Each
    equation is solved in order as ``c1*u + c0 = 0  ->  u = -c0/c1``.
    This is not a general linear-system solver: no elimination across
    equations is attempted.

    Parameters
    ----------
    equations : sequence of Expression
        Coefficient equations ordered by perturbation power
    unknowns : sequence of Symbol
        Unknowns in the same order, one per equation

    Returns
    -------
    CoefficientAssignment
        Unknown -> closed-form value (expanded)

    Raises
    ------
    ShapeMismatch
        If the two sequences differ in length
    LinearSolveFailure
        If the coefficient of ``unknowns[i]`` is structurally zero or not a
        numeric constant, if the unknown appears nonlinearly, or (with
        config.STRICT_VALIDATION) if equation ``i`` still depends on a later
        unknown. The exception carries the failing ``index`` and ``unknown``.

    Notes
    -----
    Without config.STRICT_VALIDATION a non-triangular equation only warns.
    Its value then refers to later unknowns until they are resolved, and
    those values are substituted back once the whole system is solved.
    """
    equations = list(equations)
    unknowns = list(unknowns)
    if len(equations) != len(unknowns):
        raise ShapeMismatch(
            f"Got {len(equations)} equations for {len(unknowns)} unknowns")
    for unknown in unknowns:
        if not isinstance(unknown, Symbol):
            raise TypeError(f"Unknowns must be Symbols, got {unknown!r}")

    resolved = {}
    deferred = False
    for index, (equation, unknown) in enumerate(zip(equations, unknowns)):
        reduced = expand(substitute(equation, resolved))

        later = free_symbols(reduced) & set(unknowns[index + 1:])
        if later:
            names = ", ".join(sorted(s.name for s in later))
            validation_error(
                f"Equation {index} depends on unresolved unknowns {names}; "
                f"the system is not triangular",
                LinearSolveFailure, index=index, unknown=unknown)
            deferred = True

        parts = coefficients_in(reduced, unknown)
        if any(degree > 1 for degree in parts):
            raise LinearSolveFailure(
                f"Equation {index} is nonlinear in '{unknown}' "
                f"(degree {max(parts)})", index=index, unknown=unknown)
        linear = parts.get(1)
        if linear is None:
            raise LinearSolveFailure(
                f"Coefficient of '{unknown}' in equation {index} is zero",
                index=index, unknown=unknown)
        if not isinstance(linear, Constant):
            raise LinearSolveFailure(
                f"Coefficient of '{unknown}' in equation {index} is not a "
                f"numeric constant: {linear}", index=index, unknown=unknown)

        constant = parts.get(0, Constant(0))
        value = expand(Product((Constant(-_reciprocal(linear.value)), constant)))
        resolved[unknown] = value

    if deferred:
        # a value only references later unknowns, so resolve back to front
        for unknown in reversed(unknowns):
            resolved[unknown] = expand(substitute(resolved[unknown], resolved))

    assignment = CoefficientAssignment()
    for unknown in unknowns:
        assignment.assign(unknown, resolved[unknown])
    return assignment
