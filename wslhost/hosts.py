"""Reconcile managed alias lines into a hosts file.

Lines containing :data:`SENTINEL` were written by wslhost and are regenerated
on every write. All other lines are preserved as-is and in order, with the
managed lines appended after them.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

from loguru import logger

from .config import Configuration, check_access
from .errors import HostsReadError, HostsWriteError
from .util import is_windows

log = logger

SENTINEL = '# added by wslhost'
ENCODING = 'utf-8'
ERRORS = 'surrogateescape'


def is_managed(line: str) -> bool:
    return SENTINEL in line


def managed_line(address: str, alias: str) -> str:
    return f'{address} {alias} {SENTINEL}'


def strip_managed(lines: list[str]) -> list[str]:
    return [line for line in lines if not is_managed(line)]


def apply_aliases(
    aliases: list[str], address: str, lines: list[str]
) -> list[str]:
    out = list(lines)
    out.extend(managed_line(address, alias) for alias in aliases)
    return out


def read_lines(path: str | Path) -> list[str]:
    access = check_access(path)
    if not access.readable:
        raise HostsReadError(f'Unable to read file {path}', path)
    try:
        text = access.path.read_text(encoding=ENCODING, errors=ERRORS)
    except OSError as ex:
        raise HostsReadError(f'Unable to read file {path}: {ex}', path, ex) from ex
    return text.splitlines()


def preview(config: Configuration, address: str) -> list[str]:
    """Return the full file content ``commit`` would write, without writing."""
    lines = strip_managed(read_lines(config.hosts_path))
    return apply_aliases(config.aliases, address, lines)


def render(lines: list[str], newline: str | None = None) -> str:
    sep = os.linesep if newline is None else newline
    return ''.join(line + sep for line in lines)


def commit(
    config: Configuration,
    address: str,
    *,
    newline: str | None = None,
    atomic: bool = True,
) -> list[str]:
    """Rewrite the hosts file with fresh managed lines and return them.

    The target must be writable before anything is touched. With ``atomic``
    the content goes to a temporary file beside the resolved target (so a
    symlinked hosts file keeps its link) that then replaces it. On Windows,
    where a replace would swap the file ACL and owner, and whenever the
    directory refuses the temporary file, the target is truncated and
    rewritten in place.
    """
    path = Path(config.hosts_path)
    if not check_access(path).writable:
        raise HostsWriteError(f'Insufficient access to write file {path}', path)
    lines = preview(config, address)
    data = render(lines, newline)
    if atomic and not is_windows():
        try:
            _replace_atomically(path.resolve(), data)
        except PermissionError as ex:
            log.debug('Cannot stage temporary file next to {}: {}', path, ex)
        except OSError as ex:
            raise HostsWriteError(f'Unable to write file {path}: {ex}', path, ex) from ex
        else:
            log.info('Wrote {} managed line(s) to {}', len(config.aliases), path)
            return lines
    _write_in_place(path, data)
    log.info('Wrote {} managed line(s) to {}', len(config.aliases), path)
    return lines


def _write_in_place(path: Path, data: str) -> None:
    try:
        with open(path, 'w', encoding=ENCODING, errors=ERRORS, newline='') as file:
            file.write(data)
    except OSError as ex:
        raise HostsWriteError(f'Unable to write file {path}: {ex}', path, ex) from ex


def _replace_atomically(path: Path, data: str) -> None:
    # Raises PermissionError only while creating the temporary file.
    fd, tmp_name = tempfile.mkstemp(
        prefix=f'.{path.name}.', suffix='.tmp', dir=path.parent
    )
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, 'w', encoding=ENCODING, errors=ERRORS, newline='') as file:
            file.write(data)
        shutil.copymode(path, tmp)
        os.replace(tmp, path)
    except OSError as ex:
        tmp.unlink(missing_ok=True)
        raise HostsWriteError(f'Unable to write file {path}: {ex}', path, ex) from ex
