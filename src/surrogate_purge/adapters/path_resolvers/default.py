"""Filesystem path resolution for the settings file and the shell startup file.

Purpose
-------
Encapsulate the OS-specific conventions the tool relies on so that the
composition root and the setup orchestrator stay platform-agnostic.

Contents
--------
* :class:`DefaultPathResolver` – resolves the per-user settings file and the
  shell startup file that receives export blocks.

System Role
-----------
Used by :func:`surrogate_purge.core.read_settings` and
:func:`surrogate_purge.application.setup.execute_setup`. Environment overrides
(``XDG_CONFIG_HOME``, ``APPDATA``, ``SURROGATE_PURGE_MAC_HOME_ROOT``) keep the
resolution deterministic in tests.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path, PureWindowsPath
from typing import Mapping

from ...observability import log_debug

SETTINGS_FILENAME = "config.toml"


class DefaultPathResolver:
    """Resolve configuration and shell file locations for the current user."""

    def __init__(
        self,
        *,
        slug: str,
        env: Mapping[str, str] | None = None,
        platform: str | None = None,
        home: Path | None = None,
    ) -> None:
        """Store the context required to resolve filesystem locations.

        Parameters
        ----------
        slug:
            Directory name used under the per-user configuration root.
        env:
            Optional environment mapping overriding :data:`os.environ` values.
        platform:
            Platform identifier (``sys.platform`` clone).
        home:
            Home directory; defaults to :meth:`Path.home`.
        """

        self.slug = slug
        self.env = {**os.environ, **(env or {})}
        self.platform = platform or sys.platform
        self.home = home or Path.home()

    @property
    def _is_macos(self) -> bool:
        return self.platform == "darwin"

    @property
    def _is_windows(self) -> bool:
        return self.platform.startswith("win")

    def user_config_dir(self) -> Path:
        """Return the per-user configuration directory for :attr:`slug`.

        Examples
        --------
        >>> from pathlib import Path
        >>> resolver = DefaultPathResolver(slug="demo", env={"XDG_CONFIG_HOME": "/tmp/xdg"}, platform="linux")
        >>> resolver.user_config_dir().as_posix()
        '/tmp/xdg/demo'
        """

        if self._is_windows:
            appdata = self.env.get("APPDATA") or str(self.home / "AppData" / "Roaming")
            return Path(appdata) / self.slug
        if self._is_macos:
            default_root = self.home / "Library" / "Application Support"
            return Path(self.env.get("SURROGATE_PURGE_MAC_HOME_ROOT", default_root)) / self.slug
        xdg = self.env.get("XDG_CONFIG_HOME")
        base = Path(xdg) if xdg else self.home / ".config"
        return base / self.slug

    def settings_file(self) -> Path:
        """Return the per-user settings file path (which may not exist)."""

        path = self.user_config_dir() / SETTINGS_FILENAME
        log_debug("settings_path_resolved", stage="settings", key=None, path=str(path))
        return path

    def shell_config(self, shell: str | None) -> Path:
        """Return the startup file of *shell* that should receive export statements.

        zsh uses ``~/.zshrc``; bash prefers an existing ``~/.bash_profile`` and
        falls back to ``~/.bashrc``; fish uses ``~/.config/fish/config.fish``;
        anything else defaults to ``~/.bashrc``.

        Examples
        --------
        >>> from pathlib import Path
        >>> resolver = DefaultPathResolver(slug="demo", home=Path("/home/dev"), platform="linux")
        >>> resolver.shell_config("/usr/bin/zsh").as_posix()
        '/home/dev/.zshrc'
        >>> resolver.shell_config("/usr/bin/fish").as_posix()
        '/home/dev/.config/fish/config.fish'
        """

        name = PureWindowsPath(shell).name.lower() if shell else ""
        if "zsh" in name:
            target = self.home / ".zshrc"
        elif "bash" in name:
            bash_profile = self.home / ".bash_profile"
            target = bash_profile if bash_profile.exists() else self.home / ".bashrc"
        elif "fish" in name:
            target = self.home / ".config" / "fish" / "config.fish"
        else:
            target = self.home / ".bashrc"
        log_debug("shell_config_resolved", stage="materialize", key=None, shell=name or None, path=str(target))
        return target
