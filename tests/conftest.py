from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from mdtoimage.adapters.highlight import reset_highlighters
from mdtoimage.core.user_dir import CACHE_DIR_ENV


@dataclass
class Node:
    """Minimal stand-in for a parser syntax node."""

    type: str
    content: str = ""
    children: list[Any] = field(default_factory=list)
    attrs: dict[str, Any] = field(default_factory=dict)
    tag: str = ""
    info: str = ""


class RecordingEmitter:
    def __init__(self) -> None:
        self.debug_enabled = False
        self.warnings: list[tuple[str, BaseException | None]] = []
        self.errors: list[tuple[str, BaseException | None]] = []
        self.events: list[tuple[str, dict[str, Any]]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append((message, exc))

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.errors.append((message, exc))

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        self.events.append((name, dict(payload)))

    def event_names(self) -> list[str]:
        return [name for name, _ in self.events]


@pytest.fixture(autouse=True)
def _isolated_cache(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv(CACHE_DIR_ENV, str(tmp_path_factory.mktemp("cache")))
    reset_highlighters()
    yield
    reset_highlighters()


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()
