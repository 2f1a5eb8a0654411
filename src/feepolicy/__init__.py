"""
feepolicy - composable fee computation over exact decimal money

Discount policies for scheduled screenings and decorator chains of rate
policies for usage ledgers.
"""

from .domain import *  # noqa: F401,F403
from .domain import __all__ as _domain_all

__version__ = "1.0.0"

__all__ = list(_domain_all) + ["__version__"]
