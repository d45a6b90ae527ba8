"""Security pattern library for single configuration values.

Purpose
-------
Decide whether a value would be dangerous if interpolated unescaped into a
shell command or written into a file that a shell later sources. All checks
are stateless predicates over one string; callers collect the returned finding
messages.

Contents
--------
* :data:`SECURITY_PATTERNS` / :data:`ALL_CHECKS` – named static checks.
* :func:`check_dangerous_patterns` – static metacharacter, substitution,
  redirection, traversal, NUL, quoting and control-character checks. Quotes,
  backslashes and line breaks are rejected for every shell family.
* :func:`check_shell_injection` – escaping-based detection with a static
  fallback when the escaper fails.
* :func:`check_suspicious_keywords` – advisory keyword scan (warnings only).
* :func:`requires_escaping` – raw escaping comparison reused by the export
  command validator.

Display-name fields (human readable service names) may contain spaces; every
other rule still applies to them.
"""

from __future__ import annotations

import re
from typing import Final, Iterable

from ..application.ports import ShellEscaper
from ..domain.errors import ShellEscapeError
from ..domain.settings import DEFAULT_SUSPICIOUS_KEYWORDS
from ..observability import log_debug

DANGEROUS_CHARS: Final[str] = "dangerous_chars"
COMMAND_SUBSTITUTION: Final[str] = "command_substitution"
REDIRECTION: Final[str] = "redirection"
PATH_TRAVERSAL: Final[str] = "path_traversal"
NULL_BYTES: Final[str] = "null_bytes"
QUOTING: Final[str] = "quoting"
CONTROL_CHARACTERS: Final[str] = "control_characters"

SECURITY_PATTERNS: Final[dict[str, re.Pattern[str]]] = {
    DANGEROUS_CHARS: re.compile(r"[;&|`$(){}\[\]<>]"),
    COMMAND_SUBSTITUTION: re.compile(r"\$\(|`[^`]*`"),
    REDIRECTION: re.compile(r">>|<<|>&|<&"),
    PATH_TRAVERSAL: re.compile(r"\.\./"),
    NULL_BYTES: re.compile(r"\x00"),
    QUOTING: re.compile(r"[\"'\\\r\n]"),
}

ALL_CHECKS: Final[frozenset[str]] = frozenset((*SECURITY_PATTERNS, CONTROL_CHARACTERS))


def has_control_characters(value: str) -> bool:
    """Return ``True`` when *value* contains 0x00-0x08, 0x0B, 0x0C, 0x0E-0x1F or 0x7F.

    Tab, line feed and carriage return are not control characters here.

    Examples
    --------
    >>> has_control_characters("abc\\x07"), has_control_characters("a\\tb")
    (True, False)
    """

    for char in value:
        code = ord(char)
        if code <= 0x08 or code in (0x0B, 0x0C) or 0x0E <= code <= 0x1F or code == 0x7F:
            return True
    return False


def check_dangerous_patterns(
    value: str,
    field: str,
    *,
    display_name: bool = False,
    checks: Iterable[str] = ALL_CHECKS,
) -> list[str]:
    """Return one error message per static check that *value* fails.

    Parameters
    ----------
    value:
        Value to inspect.
    field:
        Key name used in the messages.
    display_name:
        Report metacharacters with the display-name message; the character
        class never includes the space.
    checks:
        Names of the checks to run (subset of :data:`ALL_CHECKS`).

    Examples
    --------
    >>> check_dangerous_patterns("svc;rm", "FASTLY_DEV_SERVICE_IDS")
    ['Security violation in FASTLY_DEV_SERVICE_IDS: contains dangerous_chars']
    >>> check_dangerous_patterns("Dev API", "FASTLY_DEV_SERVICE_NAMES", display_name=True)
    []
    """

    enabled = set(checks)
    unknown = enabled - ALL_CHECKS
    if unknown:
        raise ValueError(f"Unknown security checks: {sorted(unknown)}")

    errors: list[str] = []
    for name, pattern in SECURITY_PATTERNS.items():
        if name not in enabled or not pattern.search(value):
            continue
        if name == DANGEROUS_CHARS and display_name:
            errors.append(f"Security violation in {field}: contains dangerous characters (excluding spaces)")
        else:
            errors.append(f"Security violation in {field}: contains {name}")
    if CONTROL_CHARACTERS in enabled and has_control_characters(value):
        errors.append(f"Security violation in {field}: contains control characters")
    return errors


def requires_escaping(value: str, escaper: ShellEscaper, *, allow_spaces: bool = False) -> bool:
    """Return ``True`` when *escaper* would change *value*.

    With ``allow_spaces`` the literal spaces are removed before comparing, so a
    value whose only special characters are spaces is accepted. Propagates
    :class:`ShellEscapeError` from the escaper.

    Examples
    --------
    >>> from surrogate_purge.security.escaping import BashEscaper
    >>> requires_escaping("Dev API", BashEscaper()), requires_escaping("Dev API", BashEscaper(), allow_spaces=True)
    (True, False)
    """

    candidate = value.replace(" ", "") if allow_spaces else value
    if not candidate:
        return False
    return escaper.escape(candidate) != candidate


def check_shell_injection(
    value: str,
    field: str,
    escaper: ShellEscaper,
    *,
    display_name: bool = False,
) -> list[str]:
    """Return errors when *value* contains characters the shell treats specially.

    Escaper failures never propagate: the static metacharacter check is applied
    instead (skipped for display names, which the non-space check already
    covers).
    """

    try:
        if not requires_escaping(value, escaper, allow_spaces=display_name):
            return []
    except ShellEscapeError as exc:
        log_debug("shell_escape_fallback", stage="validate", key=field, family=escaper.family, error=str(exc))
        if not display_name and SECURITY_PATTERNS[DANGEROUS_CHARS].search(value):
            return [f"Security violation in {field}: contains potentially dangerous shell characters"]
        return []
    if display_name:
        return [f"Security violation in {field}: contains dangerous shell metacharacters beyond spaces"]
    return [f"Security violation in {field}: contains shell metacharacters that require escaping"]


def check_suspicious_keywords(
    value: str,
    field: str,
    keywords: Iterable[str] = DEFAULT_SUSPICIOUS_KEYWORDS,
) -> list[str]:
    """Return one warning per keyword found in *value* (case-insensitive substring).

    Examples
    --------
    >>> check_suspicious_keywords("curl-cache", "FASTLY_DEFAULT_KEYS", ["curl"])
    ["Suspicious content in FASTLY_DEFAULT_KEYS: contains 'curl'"]
    """

    lowered = value.lower()
    return [
        f"Suspicious content in {field}: contains '{keyword}'" for keyword in keywords if keyword.lower() in lowered
    ]
