"""Hand writes off to the privileged ``wslhost-writer`` helper when needed."""

from __future__ import annotations

import ctypes
import subprocess
import sys

from loguru import logger

from . import hosts
from .config import Configuration
from .errors import ElevationError, HostsReadError
from .util import is_windows, shell_join, sudo_prefix

log = logger

SW_HIDE = 0


def writer_cmd(address: str, cfg: Configuration) -> list[str]:
    """Helper argv: exactly ``<address> <comma-joined aliases> <path>``."""
    return [
        sys.executable,
        '-m',
        'wslhost.writer',
        address,
        ','.join(cfg.aliases),
        cfg.hosts_path,
    ]


def _launch_runas(cmd: list[str]) -> None:
    # ShellExecuteW returns a value greater than 32 on success.
    params = subprocess.list2cmdline(cmd[1:])
    ret = ctypes.windll.shell32.ShellExecuteW(
        None, 'runas', cmd[0], params, None, SW_HIDE
    )
    if int(ret) <= 32:
        raise ElevationError(
            f'Unable to run wslhost-writer as administrator (code={int(ret)}).'
        )


def launch_writer(address: str, cfg: Configuration) -> None:
    """Start the helper with elevated rights; its output is ignored.

    Windows uses the ``runas`` verb (UAC prompt), elsewhere ``sudo -n``.
    """
    cmd = writer_cmd(address, cfg)
    if is_windows():
        log.debug('Launching writer via runas: {}', shell_join(cmd))
        _launch_runas(cmd)
        return
    cmd = sudo_prefix(cmd)
    log.debug('Launching writer: {}', shell_join(cmd))
    try:
        subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as ex:
        raise ElevationError(f'Unable to run wslhost-writer: {ex}') from ex


def write_changes(address: str, cfg: Configuration) -> bool:
    """Commit directly when the file is writable, else hand off.

    Returns True when the write happened in this process, False when it was
    handed to the helper. A missing hosts file is a read failure, not a
    permission problem, and is never handed off.
    """
    access = cfg.check_access()
    if not access.readable and not access.path.exists():
        raise HostsReadError(f'Unable to read file {access.path}', access.path)
    if access.writable:
        hosts.commit(cfg, address)
        return True
    log.info('No write access to {}; handing off to writer', cfg.hosts_path)
    launch_writer(address, cfg)
    return False
