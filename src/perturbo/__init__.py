"""
Perturbo: Symbolic Perturbation-Series Solver

A Python package that expands the unknown of an equation with a small
parameter as a truncated power series, collects same-power terms and
solves the resulting triangular coefficient equations by forward
substitution.
"""

# Expression model
from .expression import (
    Expression, Constant, Symbol, Sum, Product, Power,
    symbols, power, expand, substitute, evaluate, free_symbols,
    coefficients_in,
)

# Series construction, coefficient extraction and solving
from .series import build_series, expand_sin, expand_cos, expand_exp
from .collect import collect_powers
from .solve import solve_coefficients, CoefficientAssignment

# Problem driver and predefined problems
from .problem import PerturbationProblem, PerturbationSolution
from .defaults import quintic, kepler, true_anomaly

# Heyoka compilation
from .lowering import to_heyoka, compile_expression, CompiledExpression

# Errors and configuration
from .errors import (
    PerturboError, UnsupportedExponent, ShapeMismatch,
    LinearSolveFailure, UnresolvedSymbol,
)
from .config import config, temp_config

# Package metadata
__version__ = "0.1.0"

# Define what gets imported with "from perturbo import *"
__all__ = [
    # Expression model
    "Expression",
    "Constant",
    "Symbol",
    "Sum",
    "Product",
    "Power",
    "symbols",
    "power",
    "expand",
    "substitute",
    "evaluate",
    "free_symbols",
    "coefficients_in",
    # Series, collection, solving
    "build_series",
    "expand_sin",
    "expand_cos",
    "expand_exp",
    "collect_powers",
    "solve_coefficients",
    "CoefficientAssignment",
    # Problems
    "PerturbationProblem",
    "PerturbationSolution",
    "quintic",
    "kepler",
    "true_anomaly",
    # Heyoka
    "to_heyoka",
    "compile_expression",
    "CompiledExpression",
    # Errors
    "PerturboError",
    "UnsupportedExponent",
    "ShapeMismatch",
    "LinearSolveFailure",
    "UnresolvedSymbol",
    # Configuration
    "config",
    "temp_config",
]
