"""
Core Utilities

Modules:
    - exceptions: Domain exceptions and HTTP helpers
"""

from branchchat.core import exceptions

__all__ = ["exceptions"]
