"""
Interio Estimator Core Package
Pricing grid and curtain worksheet engine for interior-design quoting
"""

__version__ = "0.1.0"

from . import engine
from . import infra

__all__ = ["engine", "infra"]
