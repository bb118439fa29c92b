"""Shared test fixtures for lookout."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from websockets.protocol import State


@pytest.fixture
def src_tree(tmp_path: Path) -> Path:
    """Create a small source tree for mirror tests.

    Contains markup, scripts, styles, a nested directory, and reserved
    directories (``.git`` and ``node_modules``) at the top level and nested.
    """
    src = tmp_path / "src"
    src.mkdir()
    (src / "index.html").write_text("<!DOCTYPE html>\n<html><body></body></html>\n")
    (src / "app.js").write_text("console.log('app');\n")
    (src / "styles.css").write_text("body { margin: 0; }\n")

    nested = src / "components" / "nav"
    nested.mkdir(parents=True)
    (nested / "nav.js").write_text("export const nav = 1;\n")

    git = src / ".git"
    git.mkdir()
    (git / "HEAD").write_text("ref: refs/heads/main\n")

    modules = src / "node_modules" / "left-pad"
    modules.mkdir(parents=True)
    (modules / "index.js").write_text("module.exports = 1;\n")

    deep_modules = src / "components" / "node_modules"
    deep_modules.mkdir()
    (deep_modules / "vendored.js").write_text("// vendored\n")

    return src


@pytest.fixture
def dest_dir(tmp_path: Path) -> Path:
    """Path of the (not yet created) mirror tree."""
    return tmp_path / "build"


class FakeChannel:
    """Stands in for a websockets connection in hub tests."""

    def __init__(
        self,
        state: State = State.OPEN,
        *,
        fail: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.state = state
        self.sent: list[str] = []
        self._fail = fail
        self._delay = delay

    async def send(self, message: str) -> None:
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._fail is not None:
            raise self._fail
        self.sent.append(message)


@pytest.fixture
def channel_factory() -> type[FakeChannel]:
    """The FakeChannel class, for building hub clients."""
    return FakeChannel
