"""
Global Configuration for Perturbo Package
==========================================

This module provides package-wide configuration settings that users can modify
to control truncation defaults, validation behavior, and resource warnings.

Examples
--------
View current configuration:

>>> import perturbo
>>> print(perturbo.config)

Modify settings:

>>> perturbo.config.DEFAULT_MAX_POWER = 40  # Cheaper power collection
>>> perturbo.config.STRICT_VALIDATION = False  # Warn instead of raising

Reset to defaults:

>>> perturbo.config.reset()

Temporarily modify settings:

>>> with perturbo.temp_config(TERM_WARNING_THRESHOLD=100):
...     # Warn early about oversized expansions in this block only
...     expand(series**5)

Notes
-----
These settings affect package-wide behavior. Modifying them will impact
all subsequent operations until changed again or reset.
"""

from dataclasses import dataclass
from contextlib import contextmanager


@dataclass
class PerturboConfig:
    """
    Global configuration for Perturbo package.

    Attributes
    ----------
    DEFAULT_MAX_POWER : int
        Highest power of the perturbation variable explicitly zeroed by
        collect_powers() when no max_power_bound is given. Powers above
        this bound are not discarded before coefficient extraction.
        Default: 100
    TERM_WARNING_THRESHOLD : int
        Number of terms in an expanded expression above which a
        ResourceWarning is issued. Expansion grows combinatorially with
        series order and polynomial degree.
        Default: 10000
    STRICT_VALIDATION : bool
        If True, validation failures raise exceptions.
        If False, validation failures issue warnings.
        Currently governs the triangularity check of solve_coefficients().
        Default: True
    """

    # Power collection
    DEFAULT_MAX_POWER: int = 100

    # Expansion size
    TERM_WARNING_THRESHOLD: int = 10000

    # Validation behavior
    STRICT_VALIDATION: bool = True

    def reset(self):
        """
        Reset all configuration values to package defaults.

        Examples
        --------
        >>> import perturbo
        >>> perturbo.config.DEFAULT_MAX_POWER = 20  # Modify
        >>> perturbo.config.reset()  # Back to defaults
        >>> perturbo.config.DEFAULT_MAX_POWER
        100
        """
        defaults = PerturboConfig()
        for key in self.__dataclass_fields__:
            setattr(self, key, getattr(defaults, key))

    def __repr__(self):
        """Return formatted string showing all configuration values."""
        lines = ["PerturboConfig:"]
        lines.append("  Power Collection:")
        lines.append(f"    DEFAULT_MAX_POWER = {self.DEFAULT_MAX_POWER}")
        lines.append("  Expansion:")
        lines.append(f"    TERM_WARNING_THRESHOLD = {self.TERM_WARNING_THRESHOLD}")
        lines.append("  Behavior:")
        lines.append(f"    STRICT_VALIDATION = {self.STRICT_VALIDATION}")
        return "\n".join(lines)


# Global configuration instance
config = PerturboConfig()


@contextmanager
def temp_config(**kwargs):
    """
    Context manager for temporarily modifying configuration values.

    Configuration is automatically restored when the context exits,
    even if an exception occurs.

    Parameters
    ----------
    **kwargs
        Configuration attributes to temporarily modify.

    Examples
    --------
    >>> import perturbo
    >>> with perturbo.temp_config(STRICT_VALIDATION=False):
    ...     # Non-triangular systems only warn here
    ...     solve_coefficients(eqs, unknowns)
    >>> # Original config restored here
    >>> perturbo.config.STRICT_VALIDATION
    True

    Raises
    ------
    AttributeError
        If an invalid configuration attribute is specified.
    """
    old_values = {}
    for key, value in kwargs.items():
        if not hasattr(config, key):
            raise AttributeError(
                f"PerturboConfig has no attribute '{key}'. "
                f"Valid attributes: {list(config.__dataclass_fields__.keys())}"
            )
        old_values[key] = getattr(config, key)
        setattr(config, key, value)

    try:
        yield config
    finally:
        for key, value in old_values.items():
            setattr(config, key, value)
