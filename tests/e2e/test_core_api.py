"""Composition-root coverage: settings resolution and the production wiring."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from surrogate_purge import (
    PurgeOptions,
    SecurityValidationError,
    Settings,
    SettingsError,
    SetupOptions,
    SetupOutcome,
    decode_setup_string,
    detect_shell,
    encode_setup_string,
    execute_purge,
    execute_setup,
    generate_setup_string,
    read_settings,
    setup_status,
    validate_export_commands,
    validate_setup_config,
)
from tests.support import NS_SETTINGS, RecordingLogger


def test_read_settings_defaults_without_file(tmp_path: Path) -> None:
    settings = read_settings(environ={"XDG_CONFIG_HOME": str(tmp_path)}, platform="linux", home=tmp_path)
    assert settings.namespace == "FASTLY"


def test_read_settings_layers_env_over_user_file(tmp_path: Path) -> None:
    user_file = tmp_path / "surrogate-purge" / "config.toml"
    user_file.parent.mkdir(parents=True)
    user_file.write_text('namespace = "FILE"\nmax_value_length = 64\n', encoding="utf-8")
    environ = {"XDG_CONFIG_HOME": str(tmp_path), "SURROGATE_PURGE_MAX_VALUE_LENGTH": "128"}

    settings = read_settings(environ=environ, platform="linux", home=tmp_path)

    assert settings.namespace == "FILE"
    assert settings.max_value_length == 128


def test_read_settings_explicit_path_must_exist(tmp_path: Path) -> None:
    with pytest.raises(SettingsError):
        read_settings(tmp_path / "missing.toml", environ={}, home=tmp_path)


def test_read_settings_rejects_bad_values(tmp_path: Path) -> None:
    path = tmp_path / "bad.toml"
    path.write_text('namespace = "lower case"\n', encoding="utf-8")
    with pytest.raises(SettingsError):
        read_settings(path, environ={}, home=tmp_path)


def test_detect_shell_prefers_comspec_when_no_shell() -> None:
    assert detect_shell(Settings(), {"COMSPEC": "C:/Windows/System32/cmd.exe"}) == "C:/Windows/System32/cmd.exe"


def test_validation_wrappers_use_given_shell() -> None:
    assert validate_setup_config({"NS_DEV_SERVICE_IDS": "a b"}, settings=NS_SETTINGS, shell="bash").errors
    assert validate_export_commands(['export NS_X="1"'], settings=NS_SETTINGS, shell="bash").is_valid


def test_decode_wrapper_applies_settings() -> None:
    encoded = encode_setup_string({"NS_DEV_SERVICE_IDS": "svc1"})
    assert dict(decode_setup_string(encoded, settings=NS_SETTINGS, shell="bash")) == {"NS_DEV_SERVICE_IDS": "svc1"}
    with pytest.raises(SecurityValidationError):
        decode_setup_string(encoded, shell="bash")


def test_execute_setup_writes_into_home(tmp_path: Path) -> None:
    encoded = encode_setup_string({"NS_DEV_SERVICE_IDS": "svc1"})
    logger = RecordingLogger()

    outcome = execute_setup(
        encoded,
        SetupOptions(allow_execution=True),
        logger,
        settings=NS_SETTINGS,
        environ={"SHELL": "/bin/zsh"},
        home=tmp_path,
    )

    assert outcome is SetupOutcome.COMPLETED
    assert 'export NS_DEV_SERVICE_IDS="svc1"' in (tmp_path / ".zshrc").read_text(encoding="utf-8")


def test_generate_setup_string_round_trips_through_decode() -> None:
    environ = {"NS_DEV_SERVICE_IDS": "svc1", "NS_TOKEN": "secret", "SHELL": "/bin/bash"}

    encoded = generate_setup_string(settings=NS_SETTINGS, environ=environ)

    assert dict(decode_setup_string(encoded, settings=NS_SETTINGS, shell="bash")) == {"NS_DEV_SERVICE_IDS": "svc1"}


def test_execute_purge_uses_injected_http_client() -> None:
    requests: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"status": "ok", "id": "p-1"})

    http = httpx.Client(transport=httpx.MockTransport(_handler))
    environ = {"NS_TOKEN": "secret", "NS_DEV_SERVICE_IDS": "svc1,svc2"}
    logger = RecordingLogger()

    report = execute_purge(["page"], PurgeOptions(), logger, settings=NS_SETTINGS, environ=environ, http_client=http)

    assert report.success
    assert [request.url.path for request in requests] == ["/service/svc1/purge", "/service/svc2/purge"]
    assert all(request.headers["Fastly-Key"] == "secret" for request in requests)
    assert "[svc1] Purged successfully (ID: p-1)" in logger.messages("success")
    assert not http.is_closed
    http.close()


def test_execute_purge_reports_partial_failure() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        if "svc2" in request.url.path:
            return httpx.Response(401, text="Unauthorized token")
        return httpx.Response(200, json={"status": "ok"})

    http = httpx.Client(transport=httpx.MockTransport(_handler))
    environ = {"NS_TOKEN": "secret", "NS_DEV_SERVICE_IDS": "svc1,svc2"}
    logger = RecordingLogger()

    report = execute_purge(
        [], PurgeOptions(purge_all=True), logger, settings=NS_SETTINGS, environ=environ, http_client=http
    )

    assert not report.success
    assert report.succeeded == 1
    assert "[svc2] Service svc2: HTTP 401: Unauthorized - Unauthorized token" in logger.messages("error")
    http.close()


def test_setup_status_reads_environ() -> None:
    status = setup_status(settings=NS_SETTINGS, environ={"NS_TOKEN": "t", "NS_DEV_SERVICE_IDS": "svc1"})
    assert status.is_complete
