from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from plumbum import ProcessExecutionError
from plumbum.commands.processes import CommandNotFound


def pytest_configure() -> None:
    project_root = Path(__file__).resolve().parents[2]
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))


@dataclass
class QueuedResponse:
    args: tuple[str, ...]
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    side_effect: Callable[[tuple[str, ...]], None] | None = None
    raises: Exception | None = None


@dataclass
class FakeCommand:
    """Stands in for a plumbum command, replaying queued responses."""

    name: str
    calls: list[tuple[str, ...]] = field(default_factory=list)
    queue: list[QueuedResponse] = field(default_factory=list)

    def expect(
        self,
        *args: str,
        stdout: str = "",
        stderr: str = "",
        exit_code: int = 0,
        side_effect: Callable[[tuple[str, ...]], None] | None = None,
        raises: Exception | None = None,
    ) -> None:
        self.queue.append(
            QueuedResponse(tuple(args), stdout, stderr, exit_code, side_effect, raises)
        )

    def __getitem__(self, args: Iterable[str]) -> FakeBoundCommand:
        return FakeBoundCommand(self, tuple(args))


@dataclass
class FakeBoundCommand:
    command: FakeCommand
    args: tuple[str, ...]

    def run(self, **_kwargs: object) -> tuple[int, str, str]:
        if not self.command.queue:
            raise AssertionError(f"No queued responses for command '{self.command.name}'.")
        response = self.command.queue.pop(0)
        if response.args and response.args != self.args:
            raise AssertionError(
                f"Command '{self.command.name}' expected {response.args!r} but got {self.args!r}."
            )
        self.command.calls.append(self.args)
        if response.side_effect is not None:
            response.side_effect(self.args)
        if response.raises is not None:
            raise response.raises
        if response.exit_code:
            raise ProcessExecutionError(
                [self.command.name, *self.args],
                response.exit_code,
                response.stdout,
                response.stderr,
            )
        return 0, response.stdout, response.stderr


class FakeLocal:
    """Mapping of command names to :class:`FakeCommand` objects."""

    def __init__(self) -> None:
        self.commands: dict[str, FakeCommand] = {}

    def stub(self, name: str) -> FakeCommand:
        return self.commands.setdefault(name, FakeCommand(name))

    def __getitem__(self, name: str) -> FakeCommand:
        if name not in self.commands:
            raise CommandNotFound(name, [])
        return self.commands[name]


@pytest.fixture
def fake_local(monkeypatch: pytest.MonkeyPatch) -> FakeLocal:
    """Replace plumbum's ``local`` in the command helpers."""

    fake = FakeLocal()
    monkeypatch.setattr("scripts._travis_deploy_commands.local", fake)
    return fake
