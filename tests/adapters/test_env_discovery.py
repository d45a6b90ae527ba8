"""Environment adapter tests: live accessor, overrides and service discovery."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from surrogate_purge.adapters.env.default import LiveEnvironment, ServiceDiscovery, default_env_prefix, split_list
from surrogate_purge.domain.errors import PurgeError
from tests.support import NS_SETTINGS


def test_default_env_prefix() -> None:
    assert default_env_prefix("surrogate-purge") == "SURROGATE_PURGE"


def test_live_environment_reads_os_environ_at_call_time(monkeypatch) -> None:
    environment = LiveEnvironment()
    monkeypatch.setenv("NS_LATE_VALUE", "now")
    assert environment.get("NS_LATE_VALUE") == "now"
    assert "NS_LATE_VALUE" in environment.keys_with_prefix("NS_")


def test_snapshot_excludes_credentials_and_empty_values() -> None:
    environment = LiveEnvironment(environ={"NS_B": "2", "NS_A": "1", "NS_TOKEN": "t", "NS_EMPTY": "", "X": "y"})
    assert list(environment.snapshot("NS_").items()) == [("NS_A", "1"), ("NS_B", "2")]


def test_load_overrides_coerces_scalars() -> None:
    environment = LiveEnvironment(
        environ={
            "SURROGATE_PURGE_NAMESPACE": "cdn",
            "SURROGATE_PURGE_TIMEOUT": "2.5",
            "SURROGATE_PURGE_SHELL": "none",
            "SURROGATE_PURGE_": "ignored",
            "OTHER": "1",
        }
    )
    assert environment.load_overrides("SURROGATE_PURGE") == {"namespace": "cdn", "timeout": 2.5, "shell": None}


@pytest.mark.parametrize(
    "variable",
    ["NS_DEV_SERVICE_IDS", "NS_DEVSERVICE_IDS", "DEV_SERVICE_IDS", "SERVICE_IDS_DEV", "NS_SERVICES_DEV"],
)
def test_every_legacy_pattern_is_honoured(variable: str) -> None:
    discovery = ServiceDiscovery(LiveEnvironment(environ={variable: "a,b"}), settings=NS_SETTINGS)
    assert discovery.service_ids("dev") == ["a", "b"]


def test_first_pattern_wins() -> None:
    environ = {"NS_DEV_SERVICE_IDS": "primary", "DEV_SERVICE_IDS": "legacy"}
    discovery = ServiceDiscovery(LiveEnvironment(environ=environ), settings=NS_SETTINGS)
    assert discovery.service_ids("dev") == ["primary"]


def test_blank_pattern_falls_through() -> None:
    environ = {"NS_DEV_SERVICE_IDS": " , ", "SERVICE_IDS_DEV": "fallback"}
    discovery = ServiceDiscovery(LiveEnvironment(environ=environ), settings=NS_SETTINGS)
    assert discovery.service_ids("dev") == ["fallback"]


def test_missing_services_raise_with_suggestion() -> None:
    discovery = ServiceDiscovery(LiveEnvironment(environ={}), settings=NS_SETTINGS)
    with pytest.raises(PurgeError, match="Set NS_TEST_SERVICE_IDS environment variable or use --services parameter"):
        discovery.service_ids("test")
    assert discovery.service_ids("test", required=False) == []


def test_service_names_patterns() -> None:
    discovery = ServiceDiscovery(LiveEnvironment(environ={"NS_SERVICES_PROD_NAMES": "Web, API"}), settings=NS_SETTINGS)
    assert discovery.service_names("prod") == ["Web", "API"]


def test_environment_specific_default_keys_override_global() -> None:
    environ = {"NS_DEFAULT_KEYS": "global", "NS_PROD_DEFAULT_KEYS": "prod-a"}
    discovery = ServiceDiscovery(LiveEnvironment(environ=environ), settings=NS_SETTINGS)
    assert discovery.default_keys("prod") == ["prod-a"]
    assert discovery.default_keys("dev") == ["global"]
    assert discovery.default_keys() == ["global"]


def test_status_reports_presence() -> None:
    environ = {"NS_TOKEN": "t", "NS_DEV_SERVICE_IDS": "svc", "PROD_SERVICE_IDS": "p"}
    status = ServiceDiscovery(LiveEnvironment(environ=environ), settings=NS_SETTINGS).status()
    assert status.has_token and status.has_dev_services and status.is_complete
    assert status.services == {"dev": True, "test": False, "prod": True}
    assert not status.has_default_keys


def test_status_without_token_is_incomplete() -> None:
    status = ServiceDiscovery(LiveEnvironment(environ={"NS_DEV_SERVICE_IDS": "svc"}), settings=NS_SETTINGS).status()
    assert not status.is_complete


@given(st.lists(st.text(alphabet="abc-_ ", max_size=6), max_size=5))
def test_split_list_never_returns_blank_items(items: list[str]) -> None:
    result = split_list(",".join(items))
    assert all(item and item == item.strip() for item in result)
    assert result == [item.strip() for item in items if item.strip()]
