"""
Dependency Gate

Advisory policy enforcement and dependency freshness checks for Cargo workspaces.
"""

__version__ = "0.1.0"

from .cli import main

__all__ = ["main"]
