from __future__ import annotations

from pathlib import Path

import scriptconfig as scfg
from loguru import logger

from ..config import Configuration
from ..store import load

log = logger


class _BaseCommand(scfg.DataConfig):
    """Base options shared by all commands."""

    config = scfg.Value(
        None, help='Path to the settings TOML (default: ~/.wslhost.toml).'
    )
    verbose = scfg.Value(
        0,
        short_alias=['v'],
        isflag='counter',
        help='Increase verbosity (-v, -vv).',
    )


class _TargetCommand(_BaseCommand):
    """Options selecting the distro, host names, and hosts file."""

    distro = scfg.Value(
        '',
        short_alias=['d'],
        help='WSL distro passed to wsl.exe -d. Falls back to the default distro.',
    )
    names = scfg.Value(
        '',
        help=(
            'Comma separated host names to point at the distro address. '
            '-n/--name may also be repeated.'
        ),
    )
    hosts_path = scfg.Value('', help='Hosts file to update.')


def _settings_path(p: str | None) -> Path | None:
    return Path(p).expanduser() if p else None


def _parse_names_arg(raw: str) -> list[str]:
    return [item.strip() for item in str(raw or '').split(',') if item.strip()]


def _load_target_cfg(args) -> Configuration:
    """Load persisted settings and apply command line overrides."""
    cfg = load(_settings_path(args.config))
    names = _parse_names_arg(args.names)
    if names:
        cfg.set_aliases(names)
    if args.distro:
        cfg.set_distro(args.distro)
    if args.hosts_path:
        cfg.set_hosts_path(args.hosts_path)
    log.debug(
        'Target hosts_path={} aliases={} distro={}',
        cfg.hosts_path,
        cfg.aliases,
        cfg.distro or '(default)',
    )
    return cfg
