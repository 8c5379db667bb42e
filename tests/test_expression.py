"""
Test suite for the expression model.

Tests cover:
- Node construction and operator overloading
- power() folding rules and exponent validation
- expand() canonical form and idempotence
- substitute() exact structural matching
- evaluate() with scalars, arrays and missing bindings
- Helpers (free_symbols, coefficients_in, printing)
"""

from fractions import Fraction

import numpy as np
import pytest
from perturbo import (
    Constant, Symbol, Sum, Product, Power,
    symbols, power, expand, substitute, evaluate, free_symbols,
    coefficients_in, temp_config,
    UnsupportedExponent, UnresolvedSymbol
)


@pytest.fixture
def xy():
    return symbols("x y")


@pytest.fixture
def sample_expressions(xy):
    x, y = xy
    return [
        Constant(3),
        x,
        (1 + x)**2,
        (x + y)*(x - y),
        x*(y + 1)*(y - 1) + 2*x,
        (1 + x/2)**3 - x*y,
        ((x + 1)**2)**2 - 4*x,
        Product((Sum((x, Constant(0))), Power(Sum((y, x)), 0))),
    ]


class TestConstruction:
    """Test node construction and operators."""

    def test_constant_normalizes_rationals(self):
        """Integral fractions become ints; other fractions stay exact."""
        assert Constant(Fraction(4, 2)).value == 2
        assert isinstance(Constant(Fraction(4, 2)).value, int)
        assert Constant(Fraction(1, 3)).value == Fraction(1, 3)
        assert isinstance(Constant(np.int64(5)).value, int)

    def test_constant_rejects_booleans(self):
        with pytest.raises(TypeError):
            Constant(True)

    def test_constant_rejects_non_numbers(self):
        with pytest.raises(TypeError):
            Constant("1")

    def test_symbol_identity_by_name(self):
        assert Symbol("eps") == Symbol("eps")
        assert hash(Symbol("eps")) == hash(Symbol("eps"))
        assert Symbol("eps") != Symbol("e")

    def test_empty_symbol_name_raises(self):
        with pytest.raises(ValueError):
            Symbol("")

    def test_nodes_are_immutable(self, xy):
        x, _ = xy
        with pytest.raises(AttributeError):
            x.name = "z"

    def test_addition_builds_flat_sum(self, xy):
        x, y = xy
        assert x + y + 1 == Sum((x, y, Constant(1)))

    def test_reflected_operators_wrap_numbers(self, xy):
        x, _ = xy
        assert 2*x == Product((Constant(2), x))
        assert 1 + x == Sum((Constant(1), x))

    def test_subtraction_and_negation(self, xy):
        x, y = xy
        assert x - y == Sum((x, Product((Constant(-1), y))))
        assert -Constant(2) == Constant(-2)

    def test_division_by_constant(self, xy):
        x, _ = xy
        assert x/3 == Product((x, Constant(Fraction(1, 3))))

    def test_division_by_symbol_raises(self, xy):
        x, y = xy
        with pytest.raises(UnsupportedExponent):
            x / y
        with pytest.raises(UnsupportedExponent):
            1 / x

    def test_symbolic_exponent_raises(self, xy):
        x, y = xy
        with pytest.raises(UnsupportedExponent):
            x**y
        with pytest.raises(UnsupportedExponent):
            2**x

    def test_symbols_helper(self):
        a1, a2, a3 = symbols("a", 3)
        assert (a1.name, a2.name, a3.name) == ("a1", "a2", "a3")
        assert symbols("eps") == Symbol("eps")
        assert symbols("eps, M") == (Symbol("eps"), Symbol("M"))


class TestPower:
    """Test power() folding and exponent validation."""

    def test_zero_exponent_is_one(self, xy):
        x, _ = xy
        assert power(x, 0) == Constant(1)
        assert power(Constant(0), 0) == Constant(1)

    def test_unit_exponent_returns_base(self, xy):
        x, _ = xy
        assert power(x, 1) == x

    def test_zero_base_positive_exponent(self):
        assert power(Constant(0), 5) == Constant(0)

    def test_constant_base_folded(self):
        assert power(Constant(Fraction(1, 2)), 3) == Constant(Fraction(1, 8))

    def test_float_overflow_folds_to_inf(self):
        assert power(Constant(1e200), 2) == Constant(float("inf"))
        assert Constant(-1e200)**3 == Constant(float("-inf"))

    def test_large_exact_constant_stays_exact(self):
        assert power(Constant(10), 400) == Constant(10**400)

    def test_symbolic_base_kept(self, xy):
        x, _ = xy
        assert power(x, 3) == Power(x, 3)
        assert x**2 == Power(x, 2)

    def test_integer_constant_exponent_accepted(self, xy):
        x, _ = xy
        assert power(x, Constant(2)) == Power(x, 2)

    @pytest.mark.parametrize("exponent", [-1, 0.5, 2.0, Fraction(1, 2), True])
    def test_invalid_exponents_raise(self, xy, exponent):
        x, _ = xy
        with pytest.raises(UnsupportedExponent):
            power(x, exponent)

    def test_power_node_validates_exponent(self, xy):
        x, _ = xy
        with pytest.raises(UnsupportedExponent):
            Power(x, -2)

    def test_unsupported_exponent_is_value_error(self, xy):
        x, _ = xy
        with pytest.raises(ValueError):
            power(x, -1)


class TestExpand:
    """Test expansion into canonical form."""

    def test_binomial_square(self, xy):
        x, _ = xy
        expected = Sum((Constant(1), Product((Constant(2), x)), Power(x, 2)))
        assert expand((1 + x)**2) == expected

    def test_difference_of_squares(self, xy):
        x, y = xy
        expected = Sum((Power(x, 2), Product((Constant(-1), Power(y, 2)))))
        assert expand((x + y)*(x - y)) == expected

    def test_cancellation_gives_zero(self, xy):
        x, y = xy
        assert expand(x - x) == Constant(0)
        assert expand((x + y)**2 - x**2 - 2*x*y - y**2) == Constant(0)

    def test_like_terms_combined(self, xy):
        x, y = xy
        assert expand(2*x*y + y*x*3) == Product((Constant(5), x, y))

    def test_rational_coefficients_exact(self, xy):
        x, _ = xy
        assert expand(x/2 + x/3) == Product((Constant(Fraction(5, 6)), x))

    def test_unit_coefficient_omitted(self, xy):
        x, y = xy
        assert expand(y*x) == Product((x, y))

    def test_constants_folded(self):
        assert expand(Constant(2)*3 + 4) == Constant(10)

    def test_idempotent(self, sample_expressions):
        """expand(expand(e)) == expand(e) for all sample expressions."""
        for expr in sample_expressions:
            once = expand(expr)
            assert expand(once) == once

    def test_input_not_modified(self, xy):
        x, _ = xy
        expr = (1 + x)**2
        snapshot = Power(Sum((Constant(1), x)), 2)
        expand(expr)
        assert expr == snapshot

    def test_large_expansion_warns(self, xy):
        x, y = xy
        with temp_config(TERM_WARNING_THRESHOLD=3):
            with pytest.warns(ResourceWarning):
                expand((x + y)**3)


class TestSubstitute:
    """Test exact structural substitution."""

    def test_self_substitution_is_identity(self, xy, sample_expressions):
        """substitute(e, {x: x}) == e structurally."""
        x, _ = xy
        for expr in sample_expressions:
            assert substitute(expr, {x: x}) == expr

    def test_empty_mapping_is_identity(self, sample_expressions):
        for expr in sample_expressions:
            assert substitute(expr, {}) == expr

    def test_symbol_replaced(self, xy):
        x, y = xy
        assert substitute(x + 1, {x: y}) == Sum((y, Constant(1)))

    def test_numbers_wrapped(self, xy):
        x, _ = xy
        assert substitute(2*x, {x: 3}) == Product((Constant(2), Constant(3)))

    def test_power_matches_only_exact_node(self):
        eps = Symbol("eps")
        expr = Power(eps, 3) + Power(eps, 2)
        result = substitute(expr, {Power(eps, 2): 0})
        assert result == Sum((Power(eps, 3), Constant(0)))

    def test_power_key_does_not_match_product(self):
        """eps*eps is a different shape from eps**2."""
        eps = Symbol("eps")
        expr = eps*eps
        assert substitute(expr, {eps**2: 0}) == expr

    def test_replacement_not_rescanned(self, xy):
        x, y = xy
        assert substitute(x + y, {x: y, y: x}) == Sum((y, x))

    def test_whole_subtree_replaced(self, xy):
        x, y = xy
        expr = (x + 1)*y
        assert substitute(expr, {x + 1: Constant(2)}) == Product((Constant(2), y))

    def test_input_not_modified(self, xy):
        x, y = xy
        expr = x*y + x
        substitute(expr, {x: Constant(0)})
        assert expr == Sum((Product((x, y)), x))


class TestEvaluate:
    """Test numeric evaluation."""

    def test_scalar_evaluation(self, xy):
        x, y = xy
        value = evaluate(x**2 + 3*y - Constant(Fraction(1, 2)), {x: 2.0, y: 1.0})
        assert isinstance(value, np.float64)
        assert np.isclose(value, 6.5)

    def test_constant_expression(self):
        assert evaluate(Constant(Fraction(3, 4)), {}) == 0.75

    def test_string_keys_accepted(self, xy):
        x, _ = xy
        assert np.isclose(evaluate(x + 1, {"x": 1.5}), 2.5)

    def test_array_broadcast(self, xy):
        x, y = xy
        grid = np.linspace(0, 1, 5)
        values = evaluate(1 + x*y, {x: grid, y: 2.0})
        assert values.shape == (5,)
        assert np.allclose(values, 1 + 2*grid)

    def test_missing_symbol_raises(self, xy):
        x, y = xy
        with pytest.raises(UnresolvedSymbol) as excinfo:
            evaluate(x + y, {x: 1.0})
        assert excinfo.value.symbol == y

    def test_unresolved_symbol_is_lookup_error(self, xy):
        x, _ = xy
        with pytest.raises(LookupError):
            evaluate(x, {})


class TestHelpers:
    """Test free_symbols, coefficients_in and printing."""

    def test_free_symbols(self, xy):
        x, y = xy
        assert free_symbols((x + 1)**2 * y) == {x, y}
        assert free_symbols(Constant(4)) == set()

    def test_coefficients_in(self, xy):
        x, y = xy
        parts = coefficients_in(3 + 2*x*y + x**2 - y, x)
        assert list(parts) == [0, 1, 2]
        assert parts[0] == expand(3 - y)
        assert parts[1] == Product((Constant(2), y))
        assert parts[2] == Constant(1)

    def test_coefficients_in_zero(self, xy):
        x, _ = xy
        assert coefficients_in(x - x, x) == {}

    def test_str_of_canonical_form(self, xy):
        x, _ = xy
        assert str(expand(1 - x/5)) == "1 - 1/5*x"
        assert str(expand((1 + x)**2)) == "1 + 2*x + x^2"

    def test_str_of_nested_power(self, xy):
        x, y = xy
        assert str((x + y)**2) == "(x + y)^2"

    def test_str_of_negated_terms(self, xy):
        x, y = xy
        assert str(-y) == "-y"
        assert str(expand(-x*y)) == "-x*y"
        assert str(-(x + y)) == "-(x + y)"
        assert str(expand(x - y)) == "x - y"
