"""CLI package exports for top-level command entry points."""

from __future__ import annotations

from .main import WSLHostModalCLI, main

__all__ = ['WSLHostModalCLI', 'main']
