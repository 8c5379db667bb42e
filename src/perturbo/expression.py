'''Minimal symbolic expression model for perturbation series
Constant, Symbol, Sum, Product and Power nodes with expansion,
substitution and numeric evaluation'''

import numbers
import operator
import warnings
from dataclasses import dataclass
from fractions import Fraction
from functools import reduce
from typing import Dict, Mapping, Set, Tuple, Union

import numpy as np

from .config import config
from .errors import UnsupportedExponent, UnresolvedSymbol

Number = Union[int, Fraction, float]

# precedence levels used when printing
_SUM, _PRODUCT, _POWER = 1, 2, 3


# ========== NUMERIC HELPERS ==========
def _normalize(value) -> Number:
    """Coerce a real number to int, Fraction or float (exact where possible)."""
    if isinstance(value, bool):
        raise TypeError("Booleans are not valid expression constants")
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Rational):
        value = Fraction(int(value.numerator), int(value.denominator))
        return value.numerator if value.denominator == 1 else value
    if isinstance(value, numbers.Real):
        return float(value)
    raise TypeError(f"Expression constants must be real numbers, got {type(value).__name__}")


def _reciprocal(value: Number) -> Number:
    if isinstance(value, float):
        return 1.0 / value
    return _normalize(Fraction(1) / value)


def _check_exponent(exponent) -> int:
    """Validate an exponent, returning it as a plain int."""
    if isinstance(exponent, Constant):
        exponent = exponent.value
    if isinstance(exponent, bool) or not isinstance(exponent, numbers.Integral):
        raise UnsupportedExponent(
            f"Exponent must be a non-negative integer, got {exponent!r}")
    if exponent < 0:
        raise UnsupportedExponent(
            f"Exponent must be a non-negative integer, got {exponent}")
    return int(exponent)


def as_expression(value) -> "Expression":
    """Wrap plain numbers as Constant; Expressions pass through unchanged."""
    if isinstance(value, Expression):
        return value
    if isinstance(value, numbers.Number):
        return Constant(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to an Expression")


# ========== EXPRESSION NODES ==========
class Expression:
    """
    Base class of the immutable expression tree.

    Python operators build new, unsimplified trees; call expand() to
    obtain the canonical polynomial form.

    Examples
    --------
    >>> eps, a1 = symbols("eps a1")
    >>> expand((1 + a1*eps)**2)
    """

    def __add__(self, other):
        return _sum(self, as_expression(other))

    def __radd__(self, other):
        return _sum(as_expression(other), self)

    def __sub__(self, other):
        return _sum(self, -as_expression(other))

    def __rsub__(self, other):
        return _sum(as_expression(other), -self)

    def __mul__(self, other):
        return _product(self, as_expression(other))

    def __rmul__(self, other):
        return _product(as_expression(other), self)

    def __truediv__(self, other):
        other = as_expression(other)
        if not isinstance(other, Constant):
            raise UnsupportedExponent(
                "Division by a non-constant expression requires a negative exponent")
        return _product(self, Constant(_reciprocal(other.value)))

    def __rtruediv__(self, other):
        raise UnsupportedExponent(
            "Division by a non-constant expression requires a negative exponent")

    def __neg__(self):
        return Product((Constant(-1), self))

    def __pos__(self):
        return self

    def __pow__(self, exponent):
        return power(self, exponent)

    def __rpow__(self, base):
        raise UnsupportedExponent("Symbolic exponents are not supported")

    def __str__(self):
        return _format(self, 0)


@dataclass(frozen=True, repr=False)
class Constant(Expression):
    """Numeric leaf. Integers and rationals are kept exact."""
    value: Number

    def __post_init__(self):
        object.__setattr__(self, 'value', _normalize(self.value))

    def __neg__(self):
        return Constant(-self.value)

    def __repr__(self):
        return f"Constant({self.value!r})"


@dataclass(frozen=True, repr=False)
class Symbol(Expression):
    """Named unknown or parameter. Two symbols with equal names are equal."""
    name: str

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise ValueError(f"Symbol name must be a non-empty string, got {self.name!r}")

    def __repr__(self):
        return f"Symbol({self.name!r})"


@dataclass(frozen=True, repr=False)
class Sum(Expression):
    terms: Tuple[Expression, ...]

    def __post_init__(self):
        object.__setattr__(self, 'terms', tuple(as_expression(t) for t in self.terms))

    def __repr__(self):
        return f"Sum({', '.join(repr(t) for t in self.terms)})"


@dataclass(frozen=True, repr=False)
class Product(Expression):
    factors: Tuple[Expression, ...]

    def __post_init__(self):
        object.__setattr__(self, 'factors', tuple(as_expression(f) for f in self.factors))

    def __repr__(self):
        return f"Product({', '.join(repr(f) for f in self.factors)})"


@dataclass(frozen=True, repr=False)
class Power(Expression):
    """base**exponent with a non-negative integer exponent."""
    base: Expression
    exponent: int

    def __post_init__(self):
        object.__setattr__(self, 'base', as_expression(self.base))
        object.__setattr__(self, 'exponent', _check_exponent(self.exponent))

    def __repr__(self):
        return f"Power({self.base!r}, {self.exponent})"


def _sum(left: Expression, right: Expression) -> Sum:
    # flatten operator chains so a + b + c is a single Sum
    terms = left.terms if isinstance(left, Sum) else (left,)
    terms += right.terms if isinstance(right, Sum) else (right,)
    return Sum(terms)


def _product(left: Expression, right: Expression) -> Product:
    factors = left.factors if isinstance(left, Product) else (left,)
    factors += right.factors if isinstance(right, Product) else (right,)
    return Product(factors)


# ========== CONSTRUCTION HELPERS ==========
def symbols(names: str, n: int = None):
    """
    Create Symbol objects.

    Parameters
    ----------
    names : str
        Whitespace or comma separated symbol names, or a stem when ``n``
        is given
    n : int, optional
        If given, return ``n`` indexed symbols ``stem1 .. stemN``

    Returns
    -------
    Symbol or tuple of Symbol
        A single Symbol when exactly one name is given without ``n``

    Examples
    --------
    >>> eps, M = symbols("eps M")
    >>> symbols("a", 3)
    (Symbol('a1'), Symbol('a2'), Symbol('a3'))
    """
    if n is not None:
        if isinstance(n, bool) or not isinstance(n, numbers.Integral) or n < 0:
            raise ValueError(f"Number of symbols must be a non-negative integer, got {n!r}")
        return tuple(Symbol(f"{names}{i}") for i in range(1, int(n) + 1))
    parts = names.replace(",", " ").split()
    if not parts:
        raise ValueError("At least one symbol name is required")
    created = tuple(Symbol(name) for name in parts)
    return created[0] if len(created) == 1 else created


def power(base, n) -> Expression:
    """
    Raise an expression to a non-negative integer power.

    ``n == 0`` yields Constant(1), ``n == 1`` returns the base itself and
    constant bases are folded, so Constant(0) to a positive power is
    Constant(0). Float constants fold like numpy floats and overflow to
    ``inf``.

    Raises
    ------
    UnsupportedExponent
        If ``n`` is negative, fractional or symbolic
    """
    n = _check_exponent(n)
    base = as_expression(base)
    if n == 0:
        return Constant(1)
    if isinstance(base, Constant):
        if isinstance(base.value, float):
            # overflow goes to inf as in numpy
            with np.errstate(over="ignore"):
                return Constant(float(np.power(base.value, n)))
        return Constant(base.value ** n)
    if n == 1:
        return base
    return Power(base, n)


def free_symbols(expr) -> Set[Symbol]:
    """Return the set of symbols appearing in an expression."""
    expr = as_expression(expr)
    if isinstance(expr, Symbol):
        return {expr}
    if isinstance(expr, Sum):
        children = expr.terms
    elif isinstance(expr, Product):
        children = expr.factors
    elif isinstance(expr, Power):
        children = (expr.base,)
    else:
        return set()
    found = set()
    for child in children:
        found |= free_symbols(child)
    return found


# ========== POLYNOMIAL FORM ==========
# A polynomial is a dict mapping a monomial to its coefficient. A monomial
# is a tuple of (symbol name, exponent) pairs sorted by name; () is the
# constant monomial. Zero coefficients are never stored.
def _mono_mul(left, right):
    exponents = dict(left)
    for name, k in right:
        exponents[name] = exponents.get(name, 0) + k
    return tuple(sorted(exponents.items()))


def _poly_add(target, other):
    for mono, coeff in other.items():
        total = target.get(mono, 0) + coeff
        if total == 0:
            target.pop(mono, None)
        else:
            target[mono] = total


def _poly_mul(left, right):
    result = {}
    for m1, c1 in left.items():
        for m2, c2 in right.items():
            mono = _mono_mul(m1, m2)
            result[mono] = result.get(mono, 0) + c1 * c2
    return {mono: coeff for mono, coeff in result.items() if coeff != 0}


def _to_poly(node):
    if isinstance(node, Constant):
        return {(): node.value} if node.value != 0 else {}
    if isinstance(node, Symbol):
        return {((node.name, 1),): 1}
    if isinstance(node, Sum):
        result = {}
        for term in node.terms:
            _poly_add(result, _to_poly(term))
        return result
    if isinstance(node, Product):
        result = {(): 1}
        for factor in node.factors:
            result = _poly_mul(result, _to_poly(factor))
            if not result:
                break
        return result
    if isinstance(node, Power):
        base = _to_poly(node.base)
        result = {(): 1}
        for _ in range(node.exponent):
            result = _poly_mul(result, base)
        return result
    raise TypeError(f"Unknown expression node {type(node).__name__}")


def _degree(mono):
    return sum(k for _, k in mono)


def _from_poly(poly) -> Expression:
    """Rebuild the canonical expression for a polynomial."""
    terms = []
    for mono in sorted(poly, key=lambda m: (_degree(m), m)):
        coeff = poly[mono]
        factors = [Symbol(name) if k == 1 else Power(Symbol(name), k)
                   for name, k in mono]
        if coeff != 1 or not factors:
            factors.insert(0, Constant(coeff))
        terms.append(factors[0] if len(factors) == 1 else Product(tuple(factors)))
    if not terms:
        return Constant(0)
    if len(terms) == 1:
        return terms[0]
    return Sum(tuple(terms))


def _expanded_poly(expr):
    poly = _to_poly(as_expression(expr))
    if len(poly) > config.TERM_WARNING_THRESHOLD:
        warnings.warn(
            f"Expansion produced {len(poly)} terms. Expression size grows "
            f"combinatorially with series order and polynomial degree; "
            f"consider a lower truncation order.",
            ResourceWarning,
            stacklevel=3
        )
    return poly


def expand(expr) -> Expression:
    """
    Fully expand an expression into canonical polynomial form.

    Products are distributed over sums, nested sums and products are
    flattened and like terms are combined by summing their numeric
    coefficients. Terms are ordered by total degree and then by symbol
    names, ``x**1`` is written as ``x`` and a vanishing expression becomes
    Constant(0). The operation is idempotent.

    Parameters
    ----------
    expr : Expression or number

    Returns
    -------
    Expression
        New expression in canonical form

    Warns
    -----
    ResourceWarning
        If the expansion holds more than config.TERM_WARNING_THRESHOLD terms
    """
    return _from_poly(_expanded_poly(expr))


def coefficients_in(expr, symbol: Symbol) -> Dict[int, Expression]:
    """
    Split an expression into powers of a single symbol.

    Returns
    -------
    dict
        Maps each degree of ``symbol`` present in expand(expr) to the
        canonical coefficient expression multiplying it, in increasing
        degree order. A vanishing expression yields an empty dict.
    """
    groups = {}
    for mono, coeff in _expanded_poly(expr).items():
        degree = 0
        rest = []
        for name, k in mono:
            if name == symbol.name:
                degree = k
            else:
                rest.append((name, k))
        groups.setdefault(degree, {})[tuple(rest)] = coeff
    return {degree: _from_poly(groups[degree]) for degree in sorted(groups)}


# ========== SUBSTITUTION ==========
def substitute(expr, mapping: Mapping) -> Expression:
    """
    Replace exact structural matches of mapping keys.

    The tree is walked top-down. A node equal to a key is replaced by the
    corresponding value and the replacement is not scanned again; any other
    node is rebuilt with the same shape from its substituted children.
    ``x**2`` therefore matches only a literal Power(x, 2) node. The input
    expression is left untouched.

    Parameters
    ----------
    expr : Expression
    mapping : Mapping
        Keys and values are Expressions or plain numbers

    Returns
    -------
    Expression
    """
    rules = {as_expression(key): as_expression(value) for key, value in mapping.items()}
    return _substitute(as_expression(expr), rules)


def _substitute(node, rules):
    if node in rules:
        return rules[node]
    if isinstance(node, Sum):
        return Sum(tuple(_substitute(t, rules) for t in node.terms))
    if isinstance(node, Product):
        return Product(tuple(_substitute(f, rules) for f in node.factors))
    if isinstance(node, Power):
        return Power(_substitute(node.base, rules), node.exponent)
    return node


# ========== EVALUATION ==========
def evaluate(expr, bindings: Mapping):
    """
    Numerically evaluate an expression.

    Every free symbol is replaced by its bound value and the tree is folded
    with numpy arithmetic, so array values broadcast.

    Parameters
    ----------
    expr : Expression
    bindings : Mapping
        Maps Symbol objects (or symbol names) to numbers or arrays

    Returns
    -------
    np.float64 or np.ndarray

    Raises
    ------
    UnresolvedSymbol
        If a free symbol has no binding
    """
    values = {}
    for key, value in bindings.items():
        name = key.name if isinstance(key, Symbol) else str(key)
        values[name] = np.asarray(value, dtype=float)
    result = _evaluate(as_expression(expr), values)
    return np.float64(result) if np.ndim(result) == 0 else result


def _evaluate(node, values):
    if isinstance(node, Constant):
        return float(node.value)
    if isinstance(node, Symbol):
        if node.name not in values:
            raise UnresolvedSymbol(node)
        return values[node.name]
    if isinstance(node, Sum):
        return reduce(operator.add, (_evaluate(t, values) for t in node.terms), 0.0)
    if isinstance(node, Product):
        return reduce(operator.mul, (_evaluate(f, values) for f in node.factors), 1.0)
    if isinstance(node, Power):
        return np.power(_evaluate(node.base, values), node.exponent)
    raise TypeError(f"Unknown expression node {type(node).__name__}")


# ========== PRINTING ==========
def _is_negative(node):
    if isinstance(node, Constant):
        return node.value < 0
    return (isinstance(node, Product) and bool(node.factors)
            and isinstance(node.factors[0], Constant) and node.factors[0].value < 0)


def _format(node, parent):
    if isinstance(node, Constant):
        text = str(node.value)
        if parent >= _POWER and (node.value < 0 or isinstance(node.value, Fraction)):
            return f"({text})"
        return text
    if isinstance(node, Symbol):
        return node.name
    if isinstance(node, Sum):
        if not node.terms:
            return "0"
        text = _format(node.terms[0], _SUM)
        for term in node.terms[1:]:
            if _is_negative(term):
                text += " - " + _format(-term if isinstance(term, Constant)
                                        else _drop_sign(term), _SUM)
            else:
                text += " + " + _format(term, _SUM)
        return f"({text})" if parent > _SUM else text
    if isinstance(node, Product):
        if not node.factors:
            return "1"
        lead = node.factors[0]
        if isinstance(lead, Constant) and lead.value == -1 and len(node.factors) > 1:
            text = "-" + _format(_drop_sign(node), _PRODUCT)
            return f"({text})" if parent >= _POWER else text
        parts = [_format(node.factors[0], _PRODUCT)]
        parts += [_format(f, _POWER if _is_negative(f) else _PRODUCT)
                  for f in node.factors[1:]]
        text = "*".join(parts)
        return f"({text})" if parent >= _POWER else text
    if isinstance(node, Power):
        return f"{_format(node.base, _POWER)}^{node.exponent}"
    return repr(node)


def _drop_sign(term):
    lead = -term.factors[0]
    if lead.value == 1 and len(term.factors) > 1:
        rest = term.factors[1:]
        return rest[0] if len(rest) == 1 else Product(rest)
    return Product((lead,) + term.factors[1:])
