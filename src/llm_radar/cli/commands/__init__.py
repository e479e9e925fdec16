"""CLI command implementations."""

from .kb import kb
from .scan import scan

__all__ = ["kb", "scan"]
