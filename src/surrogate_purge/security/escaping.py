"""Shell-family escaping strategies.

Purpose
-------
Answer "would this value need escaping in shell X?" for the three shell
families the tool recognises. The validators compare a value with its escaped
form: any difference means the shell would treat some character specially.

Contents
--------
* :class:`BashEscaper` – POSIX/bash-compatible shells via :func:`shlex.quote`.
* :class:`CmdEscaper` – Windows ``cmd.exe`` caret escaping.
* :class:`PowerShellEscaper` – PowerShell backtick escaping.
* :func:`resolve_shell_family` / :func:`escaper_for` – map a shell identifier
  (``/bin/zsh``, ``pwsh.exe`` ...) to a family and its escaper.
"""

from __future__ import annotations

import shlex
from pathlib import PureWindowsPath
from typing import Final

from ..application.ports import ShellEscaper
from ..domain.errors import ShellEscapeError
from ..observability import log_debug

BASH: Final[str] = "bash"
CMD: Final[str] = "cmd"
POWERSHELL: Final[str] = "powershell"

_SHELL_FAMILIES: Final[dict[str, str]] = {
    "bash": BASH,
    "zsh": BASH,
    "sh": BASH,
    "dash": BASH,
    "ksh": BASH,
    "fish": BASH,
    "cmd": CMD,
    "powershell": POWERSHELL,
    "pwsh": POWERSHELL,
}

_CMD_SPECIALS: Final[frozenset[str]] = frozenset('^&|<>()%!" \t')
_POWERSHELL_SPECIALS: Final[frozenset[str]] = frozenset("`$\"'(){};&|<>@# \t")


def _reject_nul(value: str, family: str) -> None:
    if "\0" in value:
        raise ShellEscapeError(f"{family} cannot represent NUL bytes")


class BashEscaper:
    """Escape values for bash-compatible shells.

    Examples
    --------
    >>> BashEscaper().escape("svc-1,svc-2")
    'svc-1,svc-2'
    >>> BashEscaper().escape("a b")
    "'a b'"
    """

    family = BASH

    def escape(self, value: str) -> str:
        _reject_nul(value, self.family)
        if not value:
            return value
        return shlex.quote(value)


class CmdEscaper:
    """Escape values for ``cmd.exe`` by caret-prefixing metacharacters.

    Examples
    --------
    >>> CmdEscaper().escape("a&b")
    'a^&b'
    """

    family = CMD

    def escape(self, value: str) -> str:
        _reject_nul(value, self.family)
        return "".join(f"^{char}" if char in _CMD_SPECIALS else char for char in value)


class PowerShellEscaper:
    """Escape values for PowerShell by backtick-prefixing metacharacters.

    Examples
    --------
    >>> PowerShellEscaper().escape("$env")
    '`$env'
    """

    family = POWERSHELL

    def escape(self, value: str) -> str:
        _reject_nul(value, self.family)
        return "".join(f"`{char}" if char in _POWERSHELL_SPECIALS else char for char in value)


_ESCAPERS: Final[dict[str, type]] = {
    BASH: BashEscaper,
    CMD: CmdEscaper,
    POWERSHELL: PowerShellEscaper,
}


def resolve_shell_family(shell: str | None) -> str:
    """Map a shell path or name to ``bash``, ``cmd`` or ``powershell``.

    Unknown or missing identifiers fall back to ``bash`` instead of failing.

    Examples
    --------
    >>> resolve_shell_family("/usr/bin/zsh")
    'bash'
    >>> resolve_shell_family(r"C:\\Windows\\System32\\WindowsPowerShell\\v1.0\\powershell.exe")
    'powershell'
    >>> resolve_shell_family("C:/Windows/System32/cmd.exe")
    'cmd'
    >>> resolve_shell_family(None)
    'bash'
    """

    if not shell or not shell.strip():
        return BASH
    name = PureWindowsPath(shell.strip()).name.lower()
    if name.endswith(".exe"):
        name = name[: -len(".exe")]
    family = _SHELL_FAMILIES.get(name)
    if family is None:
        log_debug("shell_family_fallback", stage="escape", key=None, shell=name, family=BASH)
        return BASH
    return family


def escaper_for(shell: str | None) -> ShellEscaper:
    """Return the escaper instance for the family of *shell*."""

    return _ESCAPERS[resolve_shell_family(shell)]()
