from __future__ import annotations

import pytest

from surrogate_purge.security.formats import field_role, is_display_name_field, validate_field_format


@pytest.mark.parametrize(
    "key, role",
    [
        ("FASTLY_DEV_SERVICE_IDS", "service_ids"),
        ("FASTLY_PROD_SERVICE_NAMES", "service_names"),
        ("FASTLY_DEFAULT_KEYS", "default_keys"),
        ("FASTLY_TEST_DEFAULT_KEYS", "default_keys"),
        ("FASTLY_API_URL", None),
    ],
)
def test_field_role(key: str, role: str | None) -> None:
    assert field_role(key) == role


def test_display_name_detection() -> None:
    assert is_display_name_field("NS_DEV_SERVICE_NAMES")
    assert not is_display_name_field("NS_DEV_SERVICE_IDS")


def test_service_ids_are_trimmed_and_checked_per_element() -> None:
    assert validate_field_format("NS_DEV_SERVICE_IDS", " svc-1 , svc_2 ") == []
    errors = validate_field_format("NS_DEV_SERVICE_IDS", "svc-1,svc.2")
    assert len(errors) == 1 and "'svc.2'" in errors[0]


def test_empty_service_name_element_is_an_error() -> None:
    assert validate_field_format("NS_DEV_SERVICE_NAMES", "Frontend, ,API") == [
        "Empty service name found in NS_DEV_SERVICE_NAMES"
    ]


def test_service_names_allow_spaces() -> None:
    assert validate_field_format("NS_DEV_SERVICE_NAMES", "Front End,Public API") == []
    assert validate_field_format("NS_DEV_SERVICE_NAMES", "Front.End")


def test_default_keys_reject_spaces() -> None:
    assert validate_field_format("NS_DEFAULT_KEYS", "global,homepage") == []
    assert validate_field_format("NS_DEFAULT_KEYS", "home page")


def test_unknown_roles_are_unconstrained() -> None:
    assert validate_field_format("NS_REGION", "eu west.1") == []
