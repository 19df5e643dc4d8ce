"""Persisted settings file holding the hosts path, aliases, and distro."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

import ubelt as ub
from loguru import logger

from .config import Configuration
from .errors import ConfigError

log = logger

SETTINGS_NAME = '.wslhost.toml'
SETTINGS_ENV = 'WSLHOST_CONFIG'


def settings_path() -> Path:
    override = os.environ.get(SETTINGS_ENV, '').strip()
    if override:
        return Path(override).expanduser()
    return Path(ub.Path.home()) / SETTINGS_NAME


def _toml_escape(s: str) -> str:
    return s.replace('\\', '\\\\').replace('"', '\\"')


def _emit_toml_kv(lines: list[str], key: str, val: object) -> None:
    if isinstance(val, list):
        parts = [f'"{_toml_escape(str(item))}"' for item in val]
        lines.append(f'{key} = [{", ".join(parts)}]')
    else:
        lines.append(f'{key} = "{_toml_escape(str(val))}"')


def dump_toml(cfg: Configuration) -> str:
    lines: list[str] = []
    _emit_toml_kv(lines, 'hosts_path', cfg.hosts_path)
    _emit_toml_kv(lines, 'aliases', cfg.aliases)
    if cfg.distro:
        _emit_toml_kv(lines, 'distro', cfg.distro)
    return '\n'.join(lines) + '\n'


def _config_from_dict(raw: dict) -> Configuration:
    cfg = Configuration.with_defaults()
    if 'hosts_path' in raw:
        if not isinstance(raw['hosts_path'], str):
            raise ConfigError('hosts_path must be a string.')
        cfg.set_hosts_path(raw['hosts_path'])
    if 'aliases' in raw:
        aliases = raw['aliases']
        if not isinstance(aliases, list) or not all(
            isinstance(a, str) for a in aliases
        ):
            raise ConfigError('aliases must be a list of strings.')
        cfg.set_aliases(aliases)
    if 'distro' in raw:
        if not isinstance(raw['distro'], str):
            raise ConfigError('distro must be a string.')
        cfg.set_distro(raw['distro'])
    return cfg


def load(path: Path | None = None) -> Configuration:
    """Load settings; a missing file yields the defaults."""
    fpath = path or settings_path()
    if not fpath.exists():
        log.debug('No settings at {}; using defaults', fpath)
        return Configuration.with_defaults()
    try:
        raw = tomllib.loads(fpath.read_text(encoding='utf-8'))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as ex:
        raise ConfigError(f'Unable to read settings {fpath}: {ex}') from ex
    return _config_from_dict(raw)


def save(cfg: Configuration, path: Path | None = None) -> Path:
    fpath = path or settings_path()
    try:
        fpath.parent.mkdir(parents=True, exist_ok=True)
        fpath.write_text(dump_toml(cfg), encoding='utf-8')
    except OSError as ex:
        raise ConfigError(f'Unable to write settings {fpath}: {ex}') from ex
    log.debug('Saved settings to {}', fpath)
    return fpath
