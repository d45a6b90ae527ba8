"""Shared fakes for the surrogate-purge test-suite.

The fakes implement the application ports over plain Python containers so the
use cases can be exercised without touching the process environment, the
terminal or the network.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

from surrogate_purge.adapters.purge.fastly import PurgeResult
from surrogate_purge.domain.errors import PurgeError
from surrogate_purge.domain.settings import Settings

NS_SETTINGS = Settings(namespace="NS")


class FakeEnvironment:
    """In-memory ``Environment`` port."""

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self.values = dict(values or {})
        self.reads: list[str] = []

    def get(self, key: str) -> str | None:
        self.reads.append(key)
        return self.values.get(key)

    def keys_with_prefix(self, prefix: str) -> list[str]:
        return [key for key in self.values if key.startswith(prefix)]


@dataclass
class RecordingLogger:
    """``Logger`` port that keeps every message with its level."""

    records: list[tuple[str, str]] = field(default_factory=list)

    def info(self, message: str) -> None:
        self.records.append(("info", message))

    def success(self, message: str) -> None:
        self.records.append(("success", message))

    def warn(self, message: str) -> None:
        self.records.append(("warn", message))

    def error(self, message: str) -> None:
        self.records.append(("error", message))

    def messages(self, level: str | None = None) -> list[str]:
        return [message for kind, message in self.records if level is None or kind == level]

    @property
    def text(self) -> str:
        return "\n".join(message for _, message in self.records)


@dataclass
class RecordingWriter:
    """``ShellConfigWriter`` port that records blocks instead of writing files."""

    present: bool = False
    failure: OSError | None = None
    blocks: list[tuple[Path, tuple[str, ...]]] = field(default_factory=list)

    def has_block(self, path: Path) -> bool:
        return self.present

    def append_block(self, path: Path, commands: Sequence[str]) -> bool:
        if self.failure is not None:
            raise self.failure
        if self.present:
            return False
        self.blocks.append((path, tuple(commands)))
        self.present = True
        return True


@dataclass
class FakePurgeClient:
    """``PurgeClient`` port recording calls; services in ``failing`` raise."""

    failing: set[str] = field(default_factory=set)
    calls: list[tuple[str, object]] = field(default_factory=list)
    closed: bool = False

    def _result(self, target: str) -> PurgeResult:
        if target in self.failing:
            raise PurgeError(f"Service {target}: HTTP 500: Internal Server Error")
        return PurgeResult(target=target, status="ok", purge_id=f"id-{target}")

    def purge_keys(self, service_id: str, keys: Sequence[str]) -> PurgeResult:
        self.calls.append(("keys", (service_id, tuple(keys))))
        return self._result(service_id)

    def purge_all(self, service_id: str) -> PurgeResult:
        self.calls.append(("all", service_id))
        return self._result(service_id)

    def purge_url(self, url: str) -> PurgeResult:
        self.calls.append(("url", url))
        return self._result(url)

    def close(self) -> None:
        self.closed = True
