"""Top-level modal CLI wiring, argv normalization, and logging setup."""

from __future__ import annotations

import os
import sys

import scriptconfig as scfg
from loguru import logger

from .. import hosts
from ..console import Console
from ..coordinator import Coordinator
from ..elevate import write_changes
from ..errors import ConfigError
from ..resolver import list_instances, resolve
from ..store import load
from ._common import (
    _BaseCommand,
    _load_target_cfg,
    _settings_path,
    _TargetCommand,
    log,
)
from .config import ConfigModalCLI

NAME_FLAGS = ('-n', '--name')
HELP_FLAGS = ('-h', '--help')


class SyncCLI(_TargetCommand):
    """Discover the distro address and write it to the hosts file."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_target_cfg(args)
        address = resolve(cfg.distro)
        if write_changes(address, cfg):
            print(f'Wrote {address} for {", ".join(cfg.aliases)} to {cfg.hosts_path}')
        else:
            print(f'Handed {address} off to wslhost-writer for {cfg.hosts_path}')
        return 0


class PreviewCLI(_TargetCommand):
    """Print the hosts file as a sync would write it, without writing."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_target_cfg(args)
        address = resolve(cfg.distro)
        for line in hosts.preview(cfg, address):
            print(line)
        return 0


class ShowCLI(_TargetCommand):
    """Print the current hosts file."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_target_cfg(args)
        for line in hosts.read_lines(cfg.hosts_path):
            print(line)
        return 0


class DistrosCLI(_BaseCommand):
    """List installed WSL distros."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        cls.cli(argv=argv, data=kwargs)
        names = list_instances()
        if not names:
            print('(none)')
        for name in names:
            print(name)
        return 0


class ShellCLI(_BaseCommand):
    """Interactive session that edits settings and writes on demand."""

    run = scfg.Value(
        False,
        isflag=True,
        help='Write the hosts file once right after start.',
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = load(_settings_path(args.config))
        coordinator = Coordinator(cfg, run_on_init=bool(args.run))
        coordinator.serve(lambda client: Console(client).loop())
        return 0


class WSLHostModalCLI(scfg.ModalCLI):
    """Point hosts file names at the IP address of a WSL distro."""

    sync = SyncCLI
    preview = PreviewCLI
    show = ShowCLI
    distros = DistrosCLI
    shell = ShellCLI
    config = ConfigModalCLI


def main(argv: list[str] | None = None) -> None:
    if argv is None:
        argv = sys.argv[1:]
    try:
        argv = _normalize_argv(argv)
    except ConfigError as ex:
        print(f'ERROR: {ex}', file=sys.stderr)
        sys.exit(1)
    _setup_logging(_count_verbose(argv))

    try:
        rc = WSLHostModalCLI.main(argv=argv, _noexit=True)
    except Exception as ex:
        print(f'ERROR: {ex}', file=sys.stderr)
        log.debug('Unhandled wslhost error: {!r}', ex)
        sys.exit(1)

    if any(flag in argv for flag in HELP_FLAGS):
        sys.exit(0)
    if isinstance(rc, int):
        sys.exit(rc)
    sys.exit(0)


def _setup_logging(args_verbose: int) -> None:
    logger.remove()
    level = 'WARNING'
    if args_verbose == 1:
        level = 'INFO'
    elif args_verbose >= 2:
        level = 'DEBUG'
    colorize = sys.stderr.isatty() and os.getenv('NO_COLOR') is None
    logger.add(
        sys.stderr,
        level=level,
        colorize=colorize,
        format='<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>',
    )
    log.debug(
        'Logging configured at {} (verbosity={}, colorize={})',
        level,
        args_verbose,
        colorize,
    )


def _normalize_argv(argv: list[str]) -> list[str]:
    """Default to ``sync`` and fold repeated ``-n/--name`` into ``--names``.

    A name flag without a value raises :class:`ConfigError`.
    """
    argv = list(argv)
    if not argv or (argv[0].startswith('-') and argv[0] not in HELP_FLAGS):
        argv = ['sync', *argv]
    names: list[str] = []
    out: list[str] = []
    i = 0
    while i < len(argv):
        item = argv[i]
        if item in NAME_FLAGS:
            if i + 1 >= len(argv) or argv[i + 1].startswith('-'):
                raise ConfigError(f'{item} requires a value')
            names.append(argv[i + 1])
            i += 2
            continue
        if item.startswith('--name='):
            names.append(item.split('=', 1)[1])
        else:
            out.append(item)
        i += 1
    if names:
        out.extend(['--names', ','.join(names)])
    return out


def _count_verbose(argv: list[str]) -> int:
    count = 0
    for item in argv:
        if item == '--verbose':
            count += 1
        elif item.startswith('-') and not item.startswith('--'):
            short = item[1:]
            if short and set(short) <= {'v'}:
                count += len(short)
    return count
