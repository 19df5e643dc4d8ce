#!/usr/bin/env python3
"""Privileged helper: ``wslhost-writer <address> <alias,alias,...> <hosts path>``."""

from __future__ import annotations

import sys

from loguru import logger

from . import hosts
from .config import Configuration
from .errors import WSLHostError

log = logger


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if len(argv) != 3:
        print('Insufficient arguments provided.', file=sys.stderr)
        return 1
    address, names, path = argv
    try:
        cfg = Configuration(hosts_path=path)
        cfg.set_aliases([n for n in names.split(',') if n.strip()])
        hosts.commit(cfg, address)
    except WSLHostError as ex:
        print(str(ex), file=sys.stderr)
        log.error('wslhost-writer failed: {}', ex)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
