"""Domain-level value objects for the configuration exchange.

Purpose
-------
Anchor the immutable :class:`Configuration` mapping that flows through the
decode, diff, synthesis and materialisation stages, plus the immutable results
those stages produce. This module contains no I/O.

Contents
--------
* :class:`Configuration` – ``Mapping[str, str]`` of environment-variable keys
  to values with functional transformation helpers.
* :class:`ValidationResult` – verdict plus ordered ``errors`` and ``warnings``.
* :class:`ChangedVar` / :class:`DiffClassification` – outcome of comparing a
  proposed configuration against the live environment.
* :func:`is_credential_key` – recognises token/credential shaped keys.
* :data:`EMPTY_CONFIGURATION` – canonical empty instance.

System Role
-----------
Every public operation of :mod:`surrogate_purge.core` consumes or returns these
types. Instances never change after construction; transformations return new
instances.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping as MappingABC
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, Mapping

_CREDENTIAL_PATTERN = re.compile(r"(?:^|_)(?:TOKEN|SECRET|PASSWORD|PASSWD|CREDENTIALS?|API_KEY)(?:_|$)")


def is_credential_key(key: str) -> bool:
    """Return ``True`` when *key* names a token or credential.

    Credentials are never part of a portable configuration and never appear in
    diff or summary output.

    Examples
    --------
    >>> is_credential_key("FASTLY_TOKEN"), is_credential_key("FASTLY_API_KEY")
    (True, True)
    >>> is_credential_key("FASTLY_DEFAULT_KEYS"), is_credential_key("FASTLY_TOKENIZER_MODE")
    (False, False)
    """

    return bool(_CREDENTIAL_PATTERN.search(key.upper()))


@dataclass(frozen=True, slots=True, eq=False)
class Configuration(MappingABC[str, str]):
    """Immutable mapping of environment-variable keys to string values.

    Why
    ----
    A decoded setup string, the live environment snapshot and every filtered
    view of them can be passed between stages without copying.

    What
    ----
    Stores entries inside a ``MappingProxyType`` preserving insertion order,
    implements the :class:`Mapping` protocol (equality compares entries, so a
    configuration equals a plain ``dict`` with the same items) and exposes
    transformations that always return new instances.

    Examples
    --------
    >>> cfg = Configuration({"FASTLY_DEV_SERVICE_IDS": "svc-1", "FASTLY_DEFAULT_KEYS": ""})
    >>> cfg["FASTLY_DEV_SERVICE_IDS"]
    'svc-1'
    >>> list(cfg.provided())
    ['FASTLY_DEV_SERVICE_IDS']
    >>> cfg == {"FASTLY_DEV_SERVICE_IDS": "svc-1", "FASTLY_DEFAULT_KEYS": ""}
    True
    """

    _data: Mapping[str, str]

    def __post_init__(self) -> None:
        """Wrap the incoming mapping in ``MappingProxyType`` to guarantee immutability."""

        object.__setattr__(self, "_data", MappingProxyType(dict(self._data)))

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        # Keys only: values may belong to credentials.
        return f"Configuration(keys={list(self._data)!r})"

    def as_dict(self) -> dict[str, str]:
        """Return a mutable ``dict`` copy of the entries."""

        return dict(self._data)

    def to_json(self, *, indent: int | None = None) -> str:
        """Serialise the entries to compact JSON.

        Examples
        --------
        >>> Configuration({"FASTLY_DEFAULT_KEYS": "a,b"}).to_json()
        '{"FASTLY_DEFAULT_KEYS":"a,b"}'
        """

        return json.dumps(self.as_dict(), indent=indent, separators=(",", ":"), ensure_ascii=False)

    def provided(self) -> Configuration:
        """Return only the entries with a non-empty value."""

        return self.filter(lambda _key, value: bool(value))

    def restricted_to(self, keys: Iterable[str] | None) -> Configuration:
        """Return the entries whose key is in *keys*; ``None`` keeps everything.

        Examples
        --------
        >>> cfg = Configuration({"A": "1", "B": "2"})
        >>> dict(cfg.restricted_to(["B"]))
        {'B': '2'}
        >>> cfg.restricted_to(None) == cfg
        True
        """

        if keys is None:
            return self
        allowed = set(keys)
        return self.filter(lambda key, _value: key in allowed)

    def without_credentials(self) -> Configuration:
        """Return the entries whose key is not credential shaped."""

        return self.filter(lambda key, _value: not is_credential_key(key))

    def filter(self, predicate: Callable[[str, str], bool]) -> Configuration:
        """Return the entries for which ``predicate(key, value)`` is true."""

        return Configuration({key: value for key, value in self._data.items() if predicate(key, value)})


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of one validation pass.

    ``errors`` determine the verdict; ``warnings`` are advisory and never change
    it.

    Examples
    --------
    >>> result = ValidationResult.from_findings([], ["Suspicious content in X: contains 'rm'"])
    >>> result.is_valid, len(result.warnings)
    (True, 1)
    """

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @classmethod
    def from_findings(cls, errors: Iterable[str], warnings: Iterable[str]) -> ValidationResult:
        """Freeze collected findings into a result whose verdict is ``not errors``."""

        frozen_errors = tuple(errors)
        return cls(is_valid=not frozen_errors, errors=frozen_errors, warnings=tuple(warnings))


@dataclass(frozen=True, slots=True)
class ChangedVar:
    """A proposed key whose live value differs from the proposed one."""

    key: str
    old: str
    new: str


@dataclass(frozen=True, slots=True)
class DiffClassification:
    """Partition of a proposed configuration against the live environment.

    ``existing_vars`` is informational (live namespace keys, credentials
    excluded). Every provided key of the proposal lands in exactly one of
    ``new_vars``, ``changed_vars`` or ``unchanged_vars``.
    """

    existing_vars: tuple[str, ...]
    new_vars: tuple[str, ...]
    changed_vars: tuple[ChangedVar, ...]
    unchanged_vars: tuple[str, ...]

    @property
    def has_conflicts(self) -> bool:
        """Return ``True`` when at least one proposed value differs from the live one."""

        return bool(self.changed_vars)

    @property
    def has_changes(self) -> bool:
        """Return ``True`` when applying the proposal would set or change anything."""

        return bool(self.new_vars or self.changed_vars)

    def classified_keys(self) -> tuple[str, ...]:
        """Return every proposed key in new, changed, unchanged order."""

        return (*self.new_vars, *(item.key for item in self.changed_vars), *self.unchanged_vars)


#: Canonical empty configuration; safe to share because instances are immutable.
EMPTY_CONFIGURATION = Configuration({})
