"""Mutable configuration record and hosts-file access probing."""

from __future__ import annotations

import copy
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError
from .util import expand

WINDOWS_HOSTS_PATH = 'C:\\Windows\\System32\\drivers\\etc\\hosts'
POSIX_HOSTS_PATH = '/etc/hosts'
DEFAULT_ALIAS = 'host.wsl.internal'


def default_hosts_path() -> str:
    if sys.platform.startswith('win'):
        return WINDOWS_HOSTS_PATH
    return POSIX_HOSTS_PATH


@dataclass(frozen=True)
class AccessDescriptor:
    path: Path
    readable: bool
    writable: bool


def check_access(path: str | Path) -> AccessDescriptor:
    """Probe read/write permission on ``path``. Never cached."""
    p = Path(path)
    exists = p.is_file()
    return AccessDescriptor(
        path=p,
        readable=exists and os.access(p, os.R_OK),
        writable=exists and os.access(p, os.W_OK),
    )


@dataclass
class Configuration:
    """Alias set, target file, instance selector, and cached address.

    ``aliases`` is insertion ordered and never holds duplicates. Mutators
    validate their input and raise :class:`ConfigError` on empty values.
    """

    hosts_path: str = field(default_factory=default_hosts_path)
    aliases: list[str] = field(default_factory=list)
    distro: str | None = None
    last_address: str | None = None

    def __post_init__(self) -> None:
        self.set_hosts_path(self.hosts_path)
        names = list(self.aliases)
        self.aliases = []
        self.set_aliases(names)

    @classmethod
    def with_defaults(cls) -> 'Configuration':
        return cls(aliases=[DEFAULT_ALIAS])

    def set_hosts_path(self, path: str | Path) -> None:
        text = str(path).strip()
        if not text:
            raise ConfigError('Hosts file path must not be empty.')
        self.hosts_path = expand(text)

    def set_aliases(self, names: list[str]) -> None:
        self.aliases = []
        for name in names:
            self.add_alias(name)

    def add_alias(self, name: str) -> bool:
        """Append ``name``; returns False when it was already present."""
        name = _clean_alias(name)
        if name in self.aliases:
            return False
        self.aliases.append(name)
        return True

    def remove_alias(self, name: str) -> bool:
        """Drop ``name``; returns False when it was not present."""
        name = str(name).strip()
        if name not in self.aliases:
            return False
        self.aliases = [a for a in self.aliases if a != name]
        return True

    def set_distro(self, distro: str | None) -> None:
        text = (distro or '').strip()
        self.distro = text or None

    def check_access(self) -> AccessDescriptor:
        return check_access(self.hosts_path)

    def snapshot(self) -> 'Configuration':
        return copy.deepcopy(self)


def _clean_alias(name: str) -> str:
    text = str(name).strip()
    if not text:
        raise ConfigError('Alias must not be empty.')
    if any(c.isspace() for c in text) or '#' in text:
        raise ConfigError(f'Alias {text!r} must not contain whitespace or "#".')
    return text
