"""
Predefined Perturbation Problems
================================

Factory functions for commonly-used perturbation problems. These functions
create PerturbationProblem objects on demand; nothing is expanded until
solve() is called.

Examples
--------
>>> from perturbo import quintic, kepler
>>> quintic().solve()(1.0)  # x**5 + eps*x = 1 at eps = 1
0.76
>>> E = kepler(order=3).solve()
>>> E(0.01671, M=np.pi/2)  # Earth's eccentric anomaly at a quarter period
"""
import numpy as np

from .expression import Symbol
from .problem import PerturbationProblem
from .series import expand_sin

"""
Predefined symbols shared by the factories
"""
EPS = Symbol('eps')
ECCENTRICITY = Symbol('e')
MEAN_ANOMALY = Symbol('M')


def quintic(order=2, max_power_bound=None):
    """
    Create the quintic problem ``x**5 + eps*x - 1 = 0``.

    At ``eps = 0`` the real root is exactly 1, which serves as the base
    of the series.

    Parameters
    ----------
    order : int, optional
        Truncation order of the series (default 2)
    max_power_bound : int, optional
        Truncation knob forwarded to collect_powers()

    Returns
    -------
    PerturbationProblem
        Problem in the perturbation variable ``eps``
    """
    return PerturbationProblem(
        lambda x: x**5 + EPS*x - 1, EPS, order,
        base=1, max_power_bound=max_power_bound
    )


def kepler(order=3, sin_terms=None, max_power_bound=None):
    """
    Create Kepler's equation ``E - e*sin(E) - M = 0`` for the eccentric anomaly.

    The eccentricity ``e`` is the perturbation variable and the mean anomaly
    ``M`` stays a free parameter, so the coefficients come out as
    polynomials in ``M``. sin(E) is replaced by its Maclaurin polynomial,
    which limits accuracy for large ``|M|``.

    Parameters
    ----------
    order : int, optional
        Truncation order of the series in ``e`` (default 3)
    sin_terms : int, optional
        Number of non-zero terms kept in the sine polynomial.
        Defaults to ``order``
    max_power_bound : int, optional
        Truncation knob forwarded to collect_powers()

    Returns
    -------
    PerturbationProblem
        Problem whose solution is evaluated as ``solution(e, M=...)``

    Notes
    -----
    At ``e = 0`` the eccentric anomaly equals the mean anomaly, which
    serves as the base of the series.
    """
    if sin_terms is None:
        sin_terms = order
    return PerturbationProblem(
        lambda E: E - ECCENTRICITY*expand_sin(E, sin_terms) - MEAN_ANOMALY,
        ECCENTRICITY, order,
        base=MEAN_ANOMALY, max_power_bound=max_power_bound
    )


def true_anomaly(E, e):
    """
    Convert eccentric anomaly to true anomaly for an elliptic orbit.

    Parameters
    ----------
    E : float or np.ndarray
        Eccentric anomaly [rad]
    e : float or np.ndarray
        Eccentricity, ``0 <= e < 1``

    Returns
    -------
    np.float64 or np.ndarray
        True anomaly [rad] in ``(-pi, pi]``
    """
    e = np.asarray(e, dtype=float)
    if np.any(e < 0) or np.any(e >= 1):
        raise ValueError(f"True anomaly requires 0 <= e < 1, got e={e}")
    return 2*np.arctan(np.sqrt((1 + e)/(1 - e)) * np.tan(np.asarray(E, dtype=float)/2))
