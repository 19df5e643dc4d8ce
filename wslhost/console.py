"""Line-oriented interactive front end that talks to a :class:`Coordinator`."""

from __future__ import annotations

import shlex
import sys
from typing import TextIO

from loguru import logger

from .coordinator import (
    Ack,
    AddAlias,
    Commit,
    CoordinatorClient,
    Failure,
    Initialize,
    Lines,
    Message,
    Preview,
    ReadRaw,
    RemoveAlias,
    Reply,
    SaveConfig,
    SetInstanceSelector,
    SetTargetPath,
    Shutdown,
    Snapshot,
)

log = logger

HELP = """\
Commands:
  add <alias>        Add a host name
  remove <alias>     Remove a host name
  distro [<name>]    Select a WSL distro (empty for the default)
  path <file>        Use a different hosts file
  show               Print the current hosts file
  preview            Print the hosts file as it would be written
  write              Discover the address and write the hosts file
  save               Save settings for the next start
  status             Print the current settings
  quit               Exit
"""


def format_snapshot(reply: Snapshot) -> str:
    cfg = reply.config
    lines = [
        f'hosts file: {cfg.hosts_path}',
        f'distro:     {cfg.distro or "(default)"}',
        f'address:    {cfg.last_address or "(unknown)"}',
        'aliases:',
    ]
    lines.extend(f'  - {name}' for name in cfg.aliases)
    if not cfg.aliases:
        lines.append('  (none)')
    if reply.instances:
        lines.append('distros:')
        lines.extend(f'  - {name}' for name in reply.instances)
    return '\n'.join(lines)


def format_reply(reply: Reply) -> str:
    if isinstance(reply, Snapshot):
        return format_snapshot(reply)
    if isinstance(reply, Lines):
        return '\n'.join(reply.lines)
    if isinstance(reply, Message):
        return reply.text
    if isinstance(reply, Failure):
        return f'error: {reply.text}'
    if isinstance(reply, Ack):
        return 'ok'
    raise TypeError(f'Unknown reply {reply!r}')


class Console:
    """Read commands from ``stdin`` and print each reply to ``stdout``."""

    prompt = 'wslhost> '

    def __init__(
        self,
        client: CoordinatorClient,
        *,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ):
        self.client = client
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.interactive = self.stdin.isatty()

    def emit(self, text: str) -> None:
        print(text, file=self.stdout)

    def loop(self) -> None:
        self.emit(format_reply(self.client.call(Initialize())))
        while True:
            if self.interactive:
                self.stdout.write(self.prompt)
                self.stdout.flush()
            raw = self.stdin.readline()
            if not raw:
                break
            try:
                parts = shlex.split(raw)
            except ValueError as ex:
                self.emit(f'error: {ex}')
                continue
            if not parts:
                continue
            if parts[0] in {'quit', 'exit'}:
                break
            self.dispatch(parts[0], parts[1:])
        self.client.call(Shutdown())

    def dispatch(self, cmd: str, args: list[str]) -> None:
        if cmd == 'help':
            self.emit(HELP.rstrip())
            return
        if cmd in {'add', 'remove', 'path'} and len(args) != 1:
            self.emit(f'usage: {cmd} <value>')
            return
        if cmd == 'add':
            request = AddAlias(args[0])
        elif cmd == 'remove':
            request = RemoveAlias(args[0])
        elif cmd == 'path':
            request = SetTargetPath(args[0])
        elif cmd == 'distro':
            request = SetInstanceSelector(' '.join(args) or None)
        elif cmd == 'show':
            request = ReadRaw()
        elif cmd == 'preview':
            request = Preview()
        elif cmd == 'write':
            request = Commit()
        elif cmd == 'save':
            request = SaveConfig()
        elif cmd == 'status':
            request = Initialize()
        else:
            self.emit(f'Unknown command {cmd!r}; try "help".')
            return
        log.debug('Console sending {}', request)
        self.emit(format_reply(self.client.call(request)))
