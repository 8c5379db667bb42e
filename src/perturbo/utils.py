"""
Utility functions for the Perturbo package.
"""

import warnings
from typing import Type
from .config import config


def validation_error(message: str, error_class: Type[Exception] = ValueError,
                     **details):
    """
    Raise error or warn based on config.STRICT_VALIDATION.

    This function provides consistent validation behavior across the package.
    When STRICT_VALIDATION is True (default), raises the specified exception.
    When False, issues a UserWarning instead.

    Parameters
    ----------
    message : str
        Validation error message
    error_class : Type[Exception], optional
        Exception class to raise if STRICT_VALIDATION is True.
        Default: ValueError
    **details
        Extra keyword arguments forwarded to the exception constructor,
        e.g. ``index`` and ``unknown`` for LinearSolveFailure

    Raises
    ------
    Exception (of type error_class)
        If config.STRICT_VALIDATION is True

    Warns
    -----
    UserWarning
        If config.STRICT_VALIDATION is False

    Examples
    --------
    >>> from perturbo.utils import validation_error
    >>> from perturbo import config, LinearSolveFailure
    >>> config.STRICT_VALIDATION = True
    >>> validation_error("Invalid value")  # Raises ValueError
    >>> validation_error("Not triangular", LinearSolveFailure, index=1)

    >>> config.STRICT_VALIDATION = False
    >>> validation_error("Invalid value")  # Issues warning
    """
    if config.STRICT_VALIDATION:
        raise error_class(message, **details)
    else:
        warnings.warn(message, UserWarning, stacklevel=3)
