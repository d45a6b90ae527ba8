"""Settings file loader.

Purpose
-------
Convert the optional TOML settings file into a flat mapping that
:meth:`surrogate_purge.domain.settings.Settings.from_mapping` understands.
Error handling and observability live here so the composition root only sees
:class:`NotFound` (optional file absent) or :class:`SettingsError`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

from ...domain.errors import SettingsError
from ...observability import log_debug, log_error


class NotFound(Exception):
    """The settings file does not exist; callers fall back to defaults."""


class TOMLSettingsLoader:
    """Load TOML settings documents using the standard library parser."""

    def _read(self, path: Path) -> bytes:
        """Read *path* as bytes, raising :class:`NotFound` when the file is missing."""

        if not path.is_file():
            raise NotFound(f"Settings file not found: {path}")
        payload = path.read_bytes()
        log_debug("settings_file_read", stage="settings", key=None, path=str(path), size=len(payload))
        return payload

    def load(self, path: str | Path) -> Mapping[str, object]:
        """Return the mapping stored in the TOML file at *path*.

        A ``[surrogate_purge]`` table, when present, is used instead of the
        top level so the settings can share a file with other tools.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile('w', suffix='.toml', delete=False, encoding='utf-8')
        >>> _ = tmp.write('namespace = "NS"')
        >>> tmp.close()
        >>> TOMLSettingsLoader().load(tmp.name)["namespace"]
        'NS'
        >>> Path(tmp.name).unlink()
        """

        file_path = Path(path)
        try:
            text = self._read(file_path).decode("utf-8")
            data = tomllib.loads(text)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            log_error("settings_file_invalid", stage="settings", key=None, path=str(file_path), error=str(exc))
            raise SettingsError(f"Invalid TOML in {file_path}: {exc}") from exc
        section = data.get("surrogate_purge", data)
        if not isinstance(section, Mapping):
            raise SettingsError(f"File {file_path} did not produce a mapping")
        log_debug("settings_file_loaded", stage="settings", key=None, path=str(file_path), fields=sorted(section))
        return section
