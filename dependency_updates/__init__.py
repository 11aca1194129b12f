"""
Dependency Updates Tool

Classifies, scores and diffs the available updates of a repository's dependencies.
"""

__version__ = "0.1.0"

from .cli import main

__all__ = ["main"]
