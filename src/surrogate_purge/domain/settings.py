"""Tunable constants of the setup and purge pipelines.

Purpose
-------
Gather every constant an operator may want to adjust (namespace prefix,
maximum value length, suspicious keyword list, shell override, API endpoint)
into one immutable value object. Defaults reproduce the documented behaviour,
so ``Settings()`` is always a valid choice.

Contents
--------
* :data:`DEFAULT_SUSPICIOUS_KEYWORDS` – keyword list scanned for warnings.
* :class:`Settings` – frozen dataclass with validation in ``from_mapping``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from typing import Any, Final, Mapping

from .errors import SettingsError

DEFAULT_NAMESPACE: Final[str] = "FASTLY"
DEFAULT_MAX_VALUE_LENGTH: Final[int] = 1000
DEFAULT_API_BASE_URL: Final[str] = "https://api.fastly.com"
DEFAULT_TIMEOUT: Final[float] = 30.0
DEFAULT_MARKER_LABEL: Final[str] = "surrogate-purge"

ENVIRONMENTS: Final[tuple[str, ...]] = ("dev", "test", "prod")

DEFAULT_SUSPICIOUS_KEYWORDS: Final[tuple[str, ...]] = (
    # deletion
    "rm", "delete", "del", "unlink", "rmdir",
    # network fetch
    "curl", "wget", "fetch", "nc", "netcat",
    # code execution
    "eval", "exec", "system", "shell",
    # privilege escalation
    "chmod", "chown", "sudo", "su",
    # process control and scheduling
    "kill", "killall", "pkill", "crontab", "at", "nohup",
    # interpreters and shells
    "python", "perl", "ruby", "node", "bash", "sh", "zsh", "fish",
    # url schemes
    "http://", "https://", "ftp://", "ssh://",
    # destructive sql
    "DROP", "DELETE", "TRUNCATE", "ALTER",
)  # fmt: skip

_NAMESPACE_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable settings consumed by validators, orchestrators and adapters.

    Attributes
    ----------
    namespace:
        Upper-case namespace; the required key prefix is ``f"{namespace}_"``.
    max_value_length:
        Longest accepted configuration value.
    suspicious_keywords:
        Substrings that produce warnings (never errors).
    shell:
        Shell identifier overriding ``$SHELL`` for escaping and the shell
        startup file; ``None`` means detect.
    api_base_url / timeout:
        Fastly API endpoint and request timeout in seconds.
    marker_label:
        Label used in the begin/end comments of the shell startup block.

    Examples
    --------
    >>> Settings().prefix
    'FASTLY_'
    >>> Settings(namespace="NS").prefix
    'NS_'
    """

    namespace: str = DEFAULT_NAMESPACE
    max_value_length: int = DEFAULT_MAX_VALUE_LENGTH
    suspicious_keywords: tuple[str, ...] = field(default=DEFAULT_SUSPICIOUS_KEYWORDS)
    shell: str | None = None
    api_base_url: str = DEFAULT_API_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    marker_label: str = DEFAULT_MARKER_LABEL

    def __post_init__(self) -> None:
        if not _NAMESPACE_PATTERN.match(self.namespace):
            raise SettingsError(f"namespace must be upper-case letters, digits and underscores: {self.namespace!r}")
        if self.max_value_length <= 0:
            raise SettingsError(f"max_value_length must be positive: {self.max_value_length}")
        if self.timeout <= 0:
            raise SettingsError(f"timeout must be positive: {self.timeout}")
        if not self.marker_label.strip() or "\n" in self.marker_label:
            raise SettingsError("marker_label must be a non-empty single line")

    @property
    def prefix(self) -> str:
        """Return the required key prefix (namespace plus underscore)."""

        return f"{self.namespace}_"

    @property
    def token_key(self) -> str:
        """Return the environment variable holding the API token."""

        return f"{self.prefix}TOKEN"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Settings:
        """Build settings from a flat mapping, ignoring unknown keys.

        ``extra_keywords`` is appended to ``suspicious_keywords``. Values of the
        wrong type raise :class:`SettingsError`.

        Examples
        --------
        >>> Settings.from_mapping({"namespace": "ns", "max_value_length": 50, "unknown": 1}).prefix
        'NS_'
        >>> "gopher://" in Settings.from_mapping({"extra_keywords": ["gopher://"]}).suspicious_keywords
        True
        """

        known = {item.name for item in fields(cls)}
        kwargs: dict[str, Any] = {}
        for name, value in data.items():
            if name not in known:
                continue
            kwargs[name] = _coerce_field(name, value)
        extras = data.get("extra_keywords")
        if extras is not None:
            base = kwargs.get("suspicious_keywords", DEFAULT_SUSPICIOUS_KEYWORDS)
            kwargs["suspicious_keywords"] = (*base, *_coerce_keywords("extra_keywords", extras))
        return cls(**kwargs)


def _coerce_field(name: str, value: Any) -> Any:
    """Validate and normalise a single settings value."""

    if name == "namespace":
        return _require_str(name, value).strip().rstrip("_").upper()
    if name == "max_value_length":
        if isinstance(value, bool) or not isinstance(value, int):
            raise SettingsError(f"{name} must be an integer, got {value!r}")
        return value
    if name == "timeout":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise SettingsError(f"{name} must be a number, got {value!r}")
        return float(value)
    if name == "suspicious_keywords":
        return _coerce_keywords(name, value)
    if name == "shell":
        return None if value is None else _require_str(name, value)
    return _require_str(name, value)


def _coerce_keywords(name: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
    elif isinstance(value, (list, tuple)):
        items = [_require_str(name, item).strip() for item in value]
    else:
        raise SettingsError(f"{name} must be a list of strings, got {value!r}")
    return tuple(item for item in items if item)


def _require_str(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise SettingsError(f"{name} must be a string, got {value!r}")
    return value
