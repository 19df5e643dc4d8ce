"""Point hosts file names at the IP address of a WSL distro."""

from __future__ import annotations

__version__ = '0.1.0'
