"""Data providers for the token pulse dashboard.

This module contains providers for:
- Token listings (auto.fun), with relay fallback routes
"""

from .base import BaseProvider
from .autofun import AutoFunTokenProvider

__all__ = ["BaseProvider", "AutoFunTokenProvider"]
