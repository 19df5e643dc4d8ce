"""Discover the IPv4 address of a WSL instance and list available instances."""

from __future__ import annotations

import ipaddress

from loguru import logger

from .errors import (
    EmptyOutputError,
    ExitStatusError,
    LaunchError,
    MalformedAddressError,
)
from .util import run_cmd

log = logger

WSL_EXE = 'wsl.exe'
INTERFACE = 'eth0'
DEFAULT_MARKER = '(Default)'


def wsl_ip_cmd(distro: str | None = None) -> list[str]:
    args = [WSL_EXE]
    if distro:
        args.extend(['-d', distro])
    args.extend(['--', 'ip', '-4', '-br', 'address', 'show', INTERFACE])
    return args


def wsl_list_cmd() -> list[str]:
    return [WSL_EXE, '-l', '--all']


def _ipv4_head(token: str) -> str | None:
    head, sep, _ = token.partition('/')
    if not sep:
        return None
    try:
        ipaddress.IPv4Address(head)
    except ValueError:
        return None
    return head


def parse_address(text: str) -> str:
    """Extract the bare address from ``ip -br`` style output.

    The last whitespace token must be an ``address/prefix`` pair. When other
    families are listed after the IPv4 pair, the last IPv4 pair wins.

    Example:
        >>> parse_address('eth0  UP  172.20.10.5/20 fe80::1/64')
        '172.20.10.5'
    """
    tokens = text.split()
    if not tokens:
        raise EmptyOutputError('Unable to split output text.')
    # `ip -4 -br` reports the address/prefix pair as the final column.
    token = tokens[-1]
    head, sep, _ = token.partition('/')
    if not sep or not head:
        raise MalformedAddressError(
            f'Unable to separate IP from subnet in {token!r}.'
        )
    for candidate in reversed(tokens):
        found = _ipv4_head(candidate)
        if found is not None:
            return found
    return head


def _decode(data: str | bytes) -> str | None:
    if isinstance(data, str):
        return data
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError:
        return None


def resolve(distro: str | None = None) -> str:
    """Return the current IPv4 address of ``distro`` (default instance if None).

    Raises a :class:`DiscoveryError` subclass on any failure; nothing is retried.
    """
    cmd = wsl_ip_cmd(distro)
    try:
        res = run_cmd(cmd, check=False, capture=True, text=False)
    except OSError as ex:
        raise LaunchError(f'Unable to run {cmd[0]}: {ex}') from ex
    if res.code != 0:
        # Some wsl.exe failures are reported on stdout instead of stderr.
        detail = (_decode(res.stderr) or '').strip() or (
            _decode(res.stdout) or ''
        ).strip()
        raise ExitStatusError(
            detail or 'Unable to run ip command.', code=res.code
        )
    text = _decode(res.stdout)
    if text is None:
        raise EmptyOutputError('Address query output is not valid text.')
    address = parse_address(text)
    log.debug('Resolved distro={} address={}', distro or '(default)', address)
    return address


def parse_instances(data: bytes) -> list[str]:
    """Parse ``wsl.exe -l --all`` output, which is UTF-16-LE with a header line."""
    text = data.decode('utf-16-le', errors='replace').replace('\x00', '')
    lines = [line.strip() for line in text.lstrip('\ufeff').splitlines()]
    return [line for line in lines[1:] if line]


def list_instances() -> list[str]:
    """Return installed instance names; the default one carries ``(Default)``."""
    cmd = wsl_list_cmd()
    try:
        res = run_cmd(cmd, check=False, capture=True, text=False)
    except OSError as ex:
        raise LaunchError(f'Unable to run {cmd[0]}: {ex}') from ex
    if res.code != 0:
        detail = (_decode(res.stderr) or '').strip()
        raise ExitStatusError(
            detail or 'Unable to get a list of distros from wsl.exe.',
            code=res.code,
        )
    return parse_instances(res.stdout)


def normalize_selector(name: str | None) -> str | None:
    """Strip the ``(Default)`` marker; empty selectors mean the default instance."""
    text = (name or '').replace(DEFAULT_MARKER, '').strip()
    return text or None
