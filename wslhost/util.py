"""Shared utility helpers for subprocess execution, paths, and command formatting."""

from __future__ import annotations

import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from loguru import logger

log = logger


@dataclass(frozen=True)
class CmdResult:
    code: int
    stdout: str | bytes
    stderr: str | bytes


class CmdError(RuntimeError):
    def __init__(self, cmd: Sequence[str] | str, result: CmdResult):
        self.cmd = cmd
        self.result = result
        stderr = result.stderr
        if isinstance(stderr, bytes):
            stderr = stderr.decode('utf-8', errors='replace')
        super().__init__(
            f'Command failed (code={result.code}): {cmd}\n{stderr}'.strip()
        )


def shell_join(cmd: Sequence[str]) -> str:
    return ' '.join(shlex.quote(c) for c in cmd)


def is_windows() -> bool:
    return os.name == 'nt'


def is_root() -> bool:
    geteuid = getattr(os, 'geteuid', None)
    return geteuid is not None and geteuid() == 0


def sudo_prefix(cmd: Sequence[str]) -> list[str]:
    """Prefix ``cmd`` with non-interactive sudo when that is needed and possible."""
    if is_windows() or is_root():
        return list(cmd)
    # Non-interactive sudo: fail fast if password/TTY is required.
    return ['sudo', '-n', *cmd]


def run_cmd(
    cmd: Sequence[str],
    *,
    sudo: bool = False,
    check: bool = True,
    capture: bool = True,
    text: bool = True,
    input_text: Optional[str] = None,
    env: Optional[dict[str, str]] = None,
) -> CmdResult:
    """Run ``cmd`` as an argument vector and collect its output.

    With ``text=False`` the captured streams are returned as raw bytes, which
    callers use when the tool does not emit UTF-8 (e.g. ``wsl.exe -l``).
    Failure to start the process propagates as :class:`OSError`.
    """
    original_cmd = cmd
    if sudo:
        cmd = sudo_prefix(cmd)
        if list(cmd) != list(original_cmd):
            log.opt(depth=1).debug(
                'Running with sudo: {}', shell_join(original_cmd)
            )
    log.opt(depth=1).debug('RUN: {}', shell_join(cmd))
    p = subprocess.run(
        list(cmd),
        input=input_text if input_text is not None else None,
        capture_output=capture,
        text=text,
        env=env,
    )
    empty = '' if text else b''
    res = CmdResult(p.returncode, p.stdout or empty, p.stderr or empty)
    if check and p.returncode != 0:
        log.opt(depth=1).error(
            'Command failed code={} cmd={} stderr={!r}',
            p.returncode,
            shell_join(cmd),
            res.stderr,
        )
        raise CmdError(cmd, res)
    if p.returncode == 0:
        log.opt(depth=1).debug('Command ok code=0 cmd={}', shell_join(cmd))
    return res


def which(cmd: str) -> Optional[str]:
    from shutil import which as _which

    return _which(cmd)


def expand(path: str) -> str:
    return os.path.expandvars(os.path.expanduser(path))
