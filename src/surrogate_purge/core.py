"""Composition root for ``surrogate_purge``.

Purpose
-------
Wire the adapters (live environment, settings file, shell startup file, Fastly
client, console) into the application use cases and export the stable public
API. Callers that need full control use the application layer directly; the
functions here supply the production defaults.

Contents
--------
* :func:`read_settings` – settings file plus ``SURROGATE_PURGE_*`` overrides.
* :func:`detect_shell` – shell identifier used for escaping and the startup file.
* :func:`validate_setup_config` / :func:`validate_export_commands` – both
  validation passes with the detected shell family.
* :func:`encode_setup_string` / :func:`decode_setup_string` – portable string codec.
* :func:`execute_setup` / :func:`generate_setup_string` – configuration exchange.
* :func:`execute_purge` / :func:`setup_status` – purge operations and guidance.

System Role
-----------
The only module that knows every adapter. The CLI talks exclusively to the
functions defined here.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Mapping, Sequence

import httpx

from .adapters.console import ConsoleLogger
from .adapters.env.default import SETTINGS_ENV_SLUG, LiveEnvironment, ServiceDiscovery, SetupStatus, default_env_prefix
from .adapters.file_loaders.structured import NotFound, TOMLSettingsLoader
from .adapters.path_resolvers.default import DefaultPathResolver
from .adapters.purge.fastly import FastlyPurgeClient
from .adapters.shell_rc.default import MarkerShellConfigWriter
from .application import codec as _codec
from .application import validation as _validation
from .application.ports import Logger, ShellConfigWriter
from .application.purge import PurgeOptions, PurgeReport
from .application.purge import execute_purge as _execute_purge
from .application.setup import SetupOptions, SetupOutcome
from .application.setup import execute_setup as _execute_setup
from .application.setup import generate_setup_string as _generate_setup_string
from .domain.config import Configuration, ValidationResult
from .domain.errors import SettingsError
from .domain.settings import Settings
from .observability import bind_trace_id, log_debug, log_info, make_event

encode_setup_string = _codec.encode_setup_string


def read_settings(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    platform: str | None = None,
    home: Path | None = None,
) -> Settings:
    """Return :class:`Settings` from the settings file and environment overrides.

    Why
    ----
    Operators tune the namespace, limits and endpoint without code changes;
    tests need the same resolution with an injected environment.

    What
    ----
    Loads *path* (which must exist) or the per-user settings file (optional),
    then applies ``SURROGATE_PURGE_<FIELD>`` variables on top. Unknown keys are
    ignored.

    Raises
    ------
    SettingsError
        *path* does not exist, the file is not valid TOML, or a value has the
        wrong type.

    Examples
    --------
    >>> read_settings(environ={"SURROGATE_PURGE_NAMESPACE": "ns"}, home=Path("/nonexistent")).prefix
    'NS_'
    """

    bind_trace_id(None)
    env = LiveEnvironment(environ=environ)
    loader = TOMLSettingsLoader()
    data: dict[str, object] = {}

    if path is not None:
        try:
            data.update(loader.load(path))
        except NotFound as exc:
            raise SettingsError(str(exc)) from exc
    else:
        resolver = DefaultPathResolver(slug=SETTINGS_ENV_SLUG, env=environ, platform=platform, home=home)
        try:
            data.update(loader.load(resolver.settings_file()))
        except NotFound:
            log_debug("settings_file_absent", stage="settings", key=None)

    overrides = env.load_overrides(default_env_prefix(SETTINGS_ENV_SLUG))
    data.update(overrides)
    settings = Settings.from_mapping(data)
    log_info("settings_loaded", **make_event("settings", None, {"fields": sorted(data), "namespace": settings.namespace}))
    return settings


def detect_shell(settings: Settings | None = None, environ: Mapping[str, str] | None = None) -> str | None:
    """Return the shell identifier: ``settings.shell``, ``$SHELL`` or ``%COMSPEC%``.

    Examples
    --------
    >>> detect_shell(Settings(shell="pwsh"), {"SHELL": "/bin/zsh"})
    'pwsh'
    >>> detect_shell(Settings(), {"SHELL": "/bin/zsh"})
    '/bin/zsh'
    >>> detect_shell(Settings(), {}) is None
    True
    """

    env = os.environ if environ is None else environ
    if settings is not None and settings.shell:
        return settings.shell
    return env.get("SHELL") or env.get("COMSPEC") or None


def validate_setup_config(
    config: Mapping[str, str],
    *,
    settings: Settings | None = None,
    shell: str | None = None,
) -> ValidationResult:
    """Validate *config* for the detected (or given) shell family."""

    active = settings or Settings()
    return _validation.validate_setup_config(config, settings=active, shell=shell or detect_shell(active))


def validate_export_commands(
    commands: Iterable[str],
    *,
    settings: Settings | None = None,
    shell: str | None = None,
) -> ValidationResult:
    """Validate synthesised ``export`` statements for the detected (or given) shell family."""

    active = settings or Settings()
    return _validation.validate_export_commands(commands, settings=active, shell=shell or detect_shell(active))


def decode_setup_string(
    encoded: str,
    *,
    settings: Settings | None = None,
    shell: str | None = None,
    logger: Logger | None = None,
) -> Configuration:
    """Decode and validate *encoded*; see :func:`surrogate_purge.application.codec.decode_setup_string`."""

    active = settings or Settings()
    return _codec.decode_setup_string(encoded, settings=active, shell=shell or detect_shell(active), logger=logger)


def execute_setup(
    encoded: str,
    options: SetupOptions | None = None,
    logger: Logger | None = None,
    *,
    settings: Settings | None = None,
    environ: Mapping[str, str] | None = None,
    home: Path | None = None,
    writer: ShellConfigWriter | None = None,
) -> SetupOutcome:
    """Run the setup pipeline against the live environment and the user's shell file.

    Parameters
    ----------
    encoded:
        Portable setup string.
    options:
        Caller intent; defaults to print mode without force.
    logger:
        Output sink; defaults to :class:`ConsoleLogger`.
    settings / environ / home:
        Injection points for tests; default to the process context.
    writer:
        Shell file writer; defaults to :class:`MarkerShellConfigWriter`.
    """

    active = settings or Settings()
    shell = detect_shell(active, environ)
    resolver = DefaultPathResolver(slug=SETTINGS_ENV_SLUG, env=environ, home=home)
    return _execute_setup(
        encoded,
        options or SetupOptions(),
        logger or ConsoleLogger(),
        environment=LiveEnvironment(environ=environ),
        target=resolver.shell_config(shell),
        writer=writer or MarkerShellConfigWriter(active.marker_label),
        settings=active,
        shell=shell,
    )


def generate_setup_string(
    *,
    settings: Settings | None = None,
    environ: Mapping[str, str] | None = None,
    export_keys: Sequence[str] | None = None,
) -> str:
    """Encode the namespace variables of the live environment (credentials excluded)."""

    active = settings or Settings()
    return _generate_setup_string(
        LiveEnvironment(environ=environ),
        settings=active,
        export_keys=export_keys,
        shell=detect_shell(active, environ),
    )


def execute_purge(
    user_keys: Sequence[str],
    options: PurgeOptions | None = None,
    logger: Logger | None = None,
    *,
    settings: Settings | None = None,
    environ: Mapping[str, str] | None = None,
    http_client: httpx.Client | None = None,
) -> PurgeReport:
    """Purge through the Fastly API using services discovered from the environment.

    *http_client* is handed to :class:`FastlyPurgeClient`; tests pass one built
    on :class:`httpx.MockTransport`.
    """

    active = settings or Settings()

    def _client(token: str) -> FastlyPurgeClient:
        return FastlyPurgeClient(token, base_url=active.api_base_url, timeout=active.timeout, client=http_client)

    return _execute_purge(
        user_keys,
        options or PurgeOptions(),
        logger or ConsoleLogger(),
        directory=ServiceDiscovery(LiveEnvironment(environ=environ), settings=active),
        client_factory=_client,
        settings=active,
    )


def setup_status(*, settings: Settings | None = None, environ: Mapping[str, str] | None = None) -> SetupStatus:
    """Report which parts of the purge configuration are present."""

    return ServiceDiscovery(LiveEnvironment(environ=environ), settings=settings).status()


__all__ = [
    "Configuration",
    "PurgeOptions",
    "PurgeReport",
    "SetupOptions",
    "SetupOutcome",
    "SetupStatus",
    "Settings",
    "ValidationResult",
    "decode_setup_string",
    "detect_shell",
    "encode_setup_string",
    "execute_purge",
    "execute_setup",
    "generate_setup_string",
    "read_settings",
    "setup_status",
    "validate_export_commands",
    "validate_setup_config",
]
