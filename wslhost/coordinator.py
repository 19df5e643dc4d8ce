"""Single-owner state coordinator for the interactive front end.

The :class:`Coordinator` holds the only :class:`Configuration` instance. The
front end never touches it; it sends a request over one queue and blocks on
the reply queue. Requests are handled one at a time in arrival order and each
produces exactly one reply, so the front end can never see a half-applied
mutation.

Example:
    >>> from wslhost.config import Configuration
    >>> coord = Coordinator(Configuration(aliases=['a.local']))
    >>> thread = coord.start()
    >>> client = coord.client()
    >>> client.call(AddAlias('b.local')).config.aliases
    ['a.local', 'b.local']
    >>> client.call(Shutdown())
    Ack()
    >>> thread.join()
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import Callable, Union

from loguru import logger

from . import hosts, store
from .config import Configuration
from .elevate import write_changes
from .errors import StateError, WSLHostError
from .notify import notify
from .resolver import list_instances, normalize_selector, resolve

log = logger

INTERNAL_ERROR = 'internal state error'


@dataclass(frozen=True)
class Initialize:
    pass


@dataclass(frozen=True)
class SetInstanceSelector:
    distro: str | None


@dataclass(frozen=True)
class AddAlias:
    name: str


@dataclass(frozen=True)
class RemoveAlias:
    name: str


@dataclass(frozen=True)
class SetTargetPath:
    path: str


@dataclass(frozen=True)
class ReadRaw:
    pass


@dataclass(frozen=True)
class Preview:
    pass


@dataclass(frozen=True)
class Commit:
    pass


@dataclass(frozen=True)
class SaveConfig:
    pass


@dataclass(frozen=True)
class Shutdown:
    pass


Request = Union[
    Initialize,
    SetInstanceSelector,
    AddAlias,
    RemoveAlias,
    SetTargetPath,
    ReadRaw,
    Preview,
    Commit,
    SaveConfig,
    Shutdown,
]
REQUEST_TYPES = Request.__args__


@dataclass(frozen=True)
class Snapshot:
    config: Configuration
    instances: tuple[str, ...] = ()


@dataclass(frozen=True)
class Ack:
    pass


@dataclass(frozen=True)
class Lines:
    lines: tuple[str, ...]


@dataclass(frozen=True)
class Message:
    text: str


@dataclass(frozen=True)
class Failure:
    text: str


Reply = Union[Snapshot, Ack, Lines, Message, Failure]


@dataclass
class Collaborators:
    """External operations the coordinator calls; replaced in tests."""

    resolve: Callable[[str | None], str] = resolve
    list_instances: Callable[[], list[str]] = list_instances
    write: Callable[[str, Configuration], bool] = write_changes
    notify: Callable[[str, list[str]], bool] = notify
    save: Callable[[Configuration], object] = store.save


class CoordinatorClient:
    """Front-end handle: send a request, wait for its reply."""

    def __init__(self, requests: queue.Queue, replies: queue.Queue):
        self._requests = requests
        self._replies = replies
        self.closed = False

    def call(self, request: Request) -> Reply:
        if self.closed:
            raise StateError('Coordinator has been shut down.')
        if isinstance(request, Shutdown):
            self.closed = True
        self._requests.put(request)
        return self._replies.get()


class Coordinator:
    RUNNING = 'running'
    STOPPED = 'stopped'

    def __init__(
        self,
        config: Configuration,
        *,
        collaborators: Collaborators | None = None,
        run_on_init: bool = False,
    ):
        self._config: Configuration | None = config
        self._ops = collaborators or Collaborators()
        self._run_on_init = run_on_init
        self._requests: queue.Queue = queue.Queue()
        self._replies: queue.Queue = queue.Queue()
        self.state = self.RUNNING
        self._handlers: dict[type, Callable[..., Reply]] = {
            Initialize: self._on_initialize,
            SetInstanceSelector: self._on_set_instance_selector,
            AddAlias: self._on_add_alias,
            RemoveAlias: self._on_remove_alias,
            SetTargetPath: self._on_set_target_path,
            ReadRaw: self._on_read_raw,
            Preview: self._on_preview,
            Commit: self._on_commit,
            SaveConfig: self._on_save_config,
            Shutdown: self._on_shutdown,
        }
        missing = [t.__name__ for t in REQUEST_TYPES if t not in self._handlers]
        if missing:
            raise StateError(f'No handler for request(s): {", ".join(missing)}')

    def client(self) -> CoordinatorClient:
        return CoordinatorClient(self._requests, self._replies)

    def run(self) -> None:
        """Process requests until :class:`Shutdown` is handled."""
        log.debug('Coordinator loop started')
        while self.state == self.RUNNING:
            request = self._requests.get()
            self._replies.put(self.handle(request))
        log.debug('Coordinator loop stopped')

    def start(self) -> threading.Thread:
        thread = threading.Thread(
            target=self.run, name='wslhost-coordinator', daemon=True
        )
        thread.start()
        return thread

    def serve(self, frontend: Callable[[CoordinatorClient], object]) -> None:
        """Run ``frontend`` on its own thread and the loop on this one.

        Returns once the loop has stopped and the front end has finished. A
        front end that returns without sending :class:`Shutdown` gets one
        sent on its behalf.
        """
        client = self.client()

        def _frontend_main() -> None:
            try:
                frontend(client)
            finally:
                if not client.closed:
                    client.call(Shutdown())

        thread = threading.Thread(
            target=_frontend_main, name='wslhost-frontend'
        )
        thread.start()
        self.run()
        thread.join()

    def handle(self, request: Request) -> Reply:
        if self.state != self.RUNNING:
            return Failure(INTERNAL_ERROR)
        handler = self._handlers.get(type(request))
        if handler is None:
            log.error('Unknown request {!r}', request)
            return Failure(INTERNAL_ERROR)
        log.debug('Handling {}', type(request).__name__)
        try:
            return handler(request)
        except StateError as ex:
            log.error('Coordinator state error: {}', ex)
            return Failure(INTERNAL_ERROR)
        except WSLHostError as ex:
            log.debug('{} failed: {}', type(request).__name__, ex)
            return Failure(str(ex))
        except Exception:
            log.exception('Unexpected failure handling {!r}', request)
            return Failure(INTERNAL_ERROR)

    def _acquire(self) -> Configuration:
        if self._config is None:
            raise StateError('Configuration is not available.')
        return self._config

    def _snapshot(self, instances: tuple[str, ...] = ()) -> Snapshot:
        return Snapshot(self._acquire().snapshot(), instances)

    def _on_initialize(self, request: Initialize) -> Reply:
        try:
            instances = tuple(self._ops.list_instances())
        except WSLHostError as ex:
            log.debug('Instance listing unavailable: {}', ex)
            instances = ()
        reply = self._snapshot(instances)
        if self._run_on_init:
            self._run_on_init = False
            try:
                outcome = self._on_commit(Commit())
            except WSLHostError as ex:
                log.warning('Run on start failed: {}', ex)
            else:
                log.info('Run on start: {}', outcome)
        return reply

    def _on_set_instance_selector(self, request: SetInstanceSelector) -> Reply:
        self._acquire().set_distro(normalize_selector(request.distro))
        return Ack()

    def _on_add_alias(self, request: AddAlias) -> Reply:
        self._acquire().add_alias(request.name)
        return self._snapshot()

    def _on_remove_alias(self, request: RemoveAlias) -> Reply:
        self._acquire().remove_alias(request.name)
        return self._snapshot()

    def _on_set_target_path(self, request: SetTargetPath) -> Reply:
        self._acquire().set_hosts_path(request.path)
        return self._snapshot()

    def _on_read_raw(self, request: ReadRaw) -> Reply:
        return Lines(tuple(hosts.read_lines(self._acquire().hosts_path)))

    def _discover(self) -> tuple[Configuration, str]:
        cfg = self._acquire()
        address = self._ops.resolve(cfg.distro)
        cfg.last_address = address
        return cfg, address

    def _on_preview(self, request: Preview) -> Reply:
        cfg, address = self._discover()
        return Lines(tuple(hosts.preview(cfg, address)))

    def _on_commit(self, request: Commit) -> Reply:
        cfg, address = self._discover()
        in_process = self._ops.write(address, cfg)
        try:
            self._ops.notify(address, list(cfg.aliases))
        except Exception as ex:
            log.warning('Notification failed: {}', ex)
        if in_process:
            return Message('Saved.')
        return Message('Handed off to wslhost-writer.')

    def _on_save_config(self, request: SaveConfig) -> Reply:
        path = self._ops.save(self._acquire().snapshot())
        return Message(f'saved to {path}')

    def _on_shutdown(self, request: Shutdown) -> Reply:
        self.state = self.STOPPED
        return Ack()
