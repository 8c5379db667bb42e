"""
Exception types raised by the Perturbo package.

Every error is recoverable and reported to the caller; the solver never
retries since all computations are deterministic.
"""


class PerturboError(Exception):
    """Base class for all Perturbo errors."""


class UnsupportedExponent(PerturboError, ValueError):
    """Raised when a power is requested with a negative, fractional or
    symbolic exponent. Only non-negative integer exponents are supported."""


class ShapeMismatch(PerturboError, ValueError):
    """Raised when the number of coefficient equations differs from the
    number of unknowns handed to the triangular solver."""


class LinearSolveFailure(PerturboError, ArithmeticError):
    """
    Raised when a coefficient equation cannot be solved for its unknown.

    Attributes
    ----------
    index : int or None
        Position of the failing equation in the solve order
    unknown : Symbol or None
        Unknown the equation was supposed to resolve
    """
    def __init__(self, message, index=None, unknown=None):
        super().__init__(message)
        self.index = index
        self.unknown = unknown


class UnresolvedSymbol(PerturboError, LookupError):
    """
    Raised when an expression is evaluated with a free symbol missing from
    the bindings.

    Attributes
    ----------
    symbol : Symbol
        The symbol that had no numeric value
    """
    def __init__(self, symbol):
        super().__init__(f"No value bound for symbol '{symbol}'")
        self.symbol = symbol
