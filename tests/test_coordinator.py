"""Tests for test coordinator."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from wslhost.config import Configuration
from wslhost.coordinator import (
    INTERNAL_ERROR,
    Ack,
    AddAlias,
    Collaborators,
    Commit,
    Coordinator,
    Failure,
    Initialize,
    Lines,
    Message,
    Preview,
    ReadRaw,
    RemoveAlias,
    SaveConfig,
    SetInstanceSelector,
    SetTargetPath,
    Shutdown,
    Snapshot,
)
from wslhost.errors import ExitStatusError, StateError
from wslhost.hosts import SENTINEL


class FakeOps:
    def __init__(self, address='10.0.0.1'):
        self.address = address
        self.resolved = []
        self.written = []
        self.notified = []
        self.saved = []

    def resolve(self, distro):
        self.resolved.append(distro)
        if isinstance(self.address, Exception):
            raise self.address
        return self.address

    def write(self, address, cfg):
        from wslhost import hosts

        hosts.commit(cfg, address, newline='\n')
        self.written.append((address, list(cfg.aliases)))
        return True

    def notify(self, address, aliases):
        self.notified.append((address, aliases))
        return True

    def save(self, cfg):
        self.saved.append(cfg)
        return '/tmp/settings.toml'

    def collaborators(self, instances=('Ubuntu (Default)',)):
        return Collaborators(
            resolve=self.resolve,
            list_instances=lambda: list(instances),
            write=self.write,
            notify=self.notify,
            save=self.save,
        )


@pytest.fixture
def hosts_file(tmp_path: Path) -> Path:
    fpath = tmp_path / 'hosts'
    fpath.write_text('127.0.0.1 localhost\n', encoding='utf-8')
    return fpath


def _running(cfg, ops, **kwargs):
    coord = Coordinator(cfg, collaborators=ops.collaborators(), **kwargs)
    thread = coord.start()
    return coord, coord.client(), thread


def test_initialize_returns_snapshot_and_instances(hosts_file: Path) -> None:
    ops = FakeOps()
    coord, client, thread = _running(
        Configuration(hosts_path=str(hosts_file), aliases=['a.local']), ops
    )
    reply = client.call(Initialize())
    assert isinstance(reply, Snapshot)
    assert reply.config.aliases == ['a.local']
    assert reply.instances == ('Ubuntu (Default)',)
    assert client.call(Shutdown()) == Ack()
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert coord.state == Coordinator.STOPPED


def test_alias_requests_reply_with_snapshots(hosts_file: Path) -> None:
    ops = FakeOps()
    _, client, thread = _running(
        Configuration(hosts_path=str(hosts_file), aliases=['a.local']), ops
    )
    assert client.call(AddAlias('b.local')).config.aliases == ['a.local', 'b.local']
    assert client.call(AddAlias('a.local')).config.aliases == ['a.local', 'b.local']
    assert client.call(RemoveAlias('zzz')).config.aliases == ['a.local', 'b.local']
    assert client.call(RemoveAlias('a.local')).config.aliases == ['b.local']
    bad = client.call(AddAlias(' '))
    assert isinstance(bad, Failure)
    client.call(Shutdown())
    thread.join(timeout=5)


def test_snapshot_is_a_copy(hosts_file: Path) -> None:
    ops = FakeOps()
    _, client, thread = _running(
        Configuration(hosts_path=str(hosts_file), aliases=['a.local']), ops
    )
    snap = client.call(Initialize())
    snap.config.aliases.append('sneaky.local')
    assert client.call(Initialize()).config.aliases == ['a.local']
    client.call(Shutdown())
    thread.join(timeout=5)


def test_selector_and_path(tmp_path: Path, hosts_file: Path) -> None:
    ops = FakeOps()
    _, client, thread = _running(
        Configuration(hosts_path=str(hosts_file), aliases=['a.local']), ops
    )
    assert client.call(SetInstanceSelector('Debian (Default)')) == Ack()
    other = tmp_path / 'other'
    reply = client.call(SetTargetPath(str(other)))
    assert reply.config.hosts_path == str(other)
    assert reply.config.distro == 'Debian'
    assert isinstance(client.call(SetTargetPath('')), Failure)
    client.call(Shutdown())
    thread.join(timeout=5)


def test_read_raw_and_preview(hosts_file: Path) -> None:
    ops = FakeOps('10.0.0.3')
    _, client, thread = _running(
        Configuration(hosts_path=str(hosts_file), aliases=['a.local']), ops
    )
    assert client.call(ReadRaw()) == Lines(('127.0.0.1 localhost',))
    reply = client.call(Preview())
    assert reply == Lines(
        ('127.0.0.1 localhost', f'10.0.0.3 a.local {SENTINEL}')
    )
    assert hosts_file.read_text(encoding='utf-8') == '127.0.0.1 localhost\n'
    assert client.call(Initialize()).config.last_address == '10.0.0.3'
    client.call(Shutdown())
    thread.join(timeout=5)


def test_commit_writes_and_notifies(hosts_file: Path) -> None:
    ops = FakeOps('10.0.0.4')
    _, client, thread = _running(
        Configuration(hosts_path=str(hosts_file), aliases=['a.local'], distro='Ubuntu'),
        ops,
    )
    assert client.call(Commit()) == Message('Saved.')
    assert client.call(Commit()) == Message('Saved.')
    assert ops.resolved == ['Ubuntu', 'Ubuntu']
    assert ops.notified[0] == ('10.0.0.4', ['a.local'])
    assert hosts_file.read_text(encoding='utf-8') == (
        f'127.0.0.1 localhost\n10.0.0.4 a.local {SENTINEL}\n'
    )
    client.call(Shutdown())
    thread.join(timeout=5)


def test_errors_become_failure_replies(tmp_path: Path) -> None:
    ops = FakeOps(ExitStatusError('There is no distribution', code=1))
    _, client, thread = _running(
        Configuration(hosts_path=str(tmp_path / 'missing'), aliases=['a.local']),
        ops,
    )
    assert client.call(Commit()) == Failure('There is no distribution')
    read = client.call(ReadRaw())
    assert isinstance(read, Failure)
    assert 'Unable to read file' in read.text
    assert ops.notified == []
    # The loop is still serving after failures.
    assert isinstance(client.call(Initialize()), Snapshot)
    client.call(Shutdown())
    thread.join(timeout=5)


def test_internal_state_error_reply() -> None:
    coord = Coordinator(
        Configuration(hosts_path='/tmp/hosts'),
        collaborators=FakeOps().collaborators(),
    )
    coord._config = None
    assert coord.handle(AddAlias('a.local')) == Failure(INTERNAL_ERROR)
    assert coord.handle(object()) == Failure(INTERNAL_ERROR)


def test_unexpected_exception_is_contained(hosts_file: Path) -> None:
    ops = FakeOps()

    def broken_save(cfg):
        raise ZeroDivisionError('boom')

    collab = ops.collaborators()
    collab.save = broken_save
    coord = Coordinator(Configuration(hosts_path=str(hosts_file)), collaborators=collab)
    assert coord.handle(SaveConfig()) == Failure(INTERNAL_ERROR)


def test_save_config(hosts_file: Path) -> None:
    ops = FakeOps()
    coord = Coordinator(
        Configuration(hosts_path=str(hosts_file), aliases=['a.local']),
        collaborators=ops.collaborators(),
    )
    assert coord.handle(SaveConfig()) == Message('saved to /tmp/settings.toml')
    assert ops.saved[0].aliases == ['a.local']


def test_run_on_init_commits_once(hosts_file: Path) -> None:
    ops = FakeOps('10.0.0.5')
    coord = Coordinator(
        Configuration(hosts_path=str(hosts_file), aliases=['a.local']),
        collaborators=ops.collaborators(),
        run_on_init=True,
    )
    assert isinstance(coord.handle(Initialize()), Snapshot)
    assert isinstance(coord.handle(Initialize()), Snapshot)
    assert len(ops.written) == 1


def test_instance_listing_failure_is_not_fatal(hosts_file: Path) -> None:
    ops = FakeOps()
    collab = ops.collaborators()

    def no_wsl():
        raise ExitStatusError('wsl.exe missing', code=1)

    collab.list_instances = no_wsl
    coord = Coordinator(Configuration(hosts_path=str(hosts_file)), collaborators=collab)
    assert coord.handle(Initialize()).instances == ()


def test_requests_after_shutdown_are_refused(hosts_file: Path) -> None:
    coord = Coordinator(
        Configuration(hosts_path=str(hosts_file)),
        collaborators=FakeOps().collaborators(),
    )
    assert coord.handle(Shutdown()) == Ack()
    assert coord.handle(Initialize()) == Failure(INTERNAL_ERROR)
    client = coord.client()
    client.closed = True
    with pytest.raises(StateError):
        client.call(Initialize())


def test_serve_runs_frontend_and_stops(hosts_file: Path) -> None:
    ops = FakeOps()
    coord = Coordinator(
        Configuration(hosts_path=str(hosts_file), aliases=['a.local']),
        collaborators=ops.collaborators(),
    )
    seen = []

    def frontend(client):
        seen.append(threading.current_thread().name)
        seen.append(client.call(AddAlias('b.local')).config.aliases)

    coord.serve(frontend)
    assert seen == ['wslhost-frontend', ['a.local', 'b.local']]
    assert coord.state == Coordinator.STOPPED


def test_replies_follow_request_order(hosts_file: Path) -> None:
    ops = FakeOps()
    _, client, thread = _running(
        Configuration(hosts_path=str(hosts_file)), ops
    )
    names = [f'h{i}.local' for i in range(20)]
    for idx, name in enumerate(names):
        reply = client.call(AddAlias(name))
        assert reply.config.aliases[-1] == name
        assert len(reply.config.aliases) == idx + 1
    client.call(Shutdown())
    thread.join(timeout=5)


def test_run_on_init_failure_still_replies_snapshot(hosts_file: Path) -> None:
    ops = FakeOps(ExitStatusError('no wsl', code=1))
    coord = Coordinator(
        Configuration(hosts_path=str(hosts_file), aliases=['a.local']),
        collaborators=ops.collaborators(),
        run_on_init=True,
    )
    reply = coord.handle(Initialize())
    assert isinstance(reply, Snapshot)
    assert reply.config.aliases == ['a.local']
    assert ops.written == []
    assert ops.notified == []
