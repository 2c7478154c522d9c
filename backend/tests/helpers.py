"""Shared test helpers."""

import os
from typing import Callable

from codescan.services.process_runner import CommandResult


class FakeRunner:
    """Stand-in for ``run_command`` that records calls and replays results.

    ``responder`` receives the argument vector and returns a CommandResult or
    raises. Without one, every command succeeds with empty output.
    """

    def __init__(self, responder: Callable[[list[str]], CommandResult] | None = None):
        self.responder = responder
        self.calls: list[dict] = []

    async def __call__(self, args, cwd=None, timeout=None, env=None):
        self.calls.append({"args": list(args), "cwd": cwd, "timeout": timeout, "env": env})
        if self.responder is None:
            return make_result(args)
        return self.responder(list(args))

    @property
    def commands(self) -> list[list[str]]:
        return [call["args"] for call in self.calls]


def make_result(args=None, returncode: int = 0, stdout: str = "", stderr: str = "") -> CommandResult:
    return CommandResult(args=list(args or []), returncode=returncode, stdout=stdout, stderr=stderr)


def write_file(base: str, relative_path: str, content: str = "") -> str:
    full_path = os.path.join(base, relative_path)
    os.makedirs(os.path.dirname(full_path), exist_ok=True)
    with open(full_path, "w", encoding="utf-8") as handle:
        handle.write(content)
    return full_path
