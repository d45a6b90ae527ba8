"""Field format validators keyed by the role inferred from a key suffix.

Each comma-separated list field has an expected shape; violations are errors
because the elements end up in purge request paths and bodies.
"""

from __future__ import annotations

import re
from typing import Final

SERVICE_IDS: Final[str] = "service_ids"
SERVICE_NAMES: Final[str] = "service_names"
DEFAULT_KEYS: Final[str] = "default_keys"

_ROLE_SUFFIXES: Final[tuple[tuple[str, str], ...]] = (
    ("_SERVICE_IDS", SERVICE_IDS),
    ("_SERVICE_NAMES", SERVICE_NAMES),
    ("_DEFAULT_KEYS", DEFAULT_KEYS),
)

_IDENTIFIER: Final[re.Pattern[str]] = re.compile(r"[A-Za-z0-9_-]+")
_DISPLAY_NAME: Final[re.Pattern[str]] = re.compile(r"[A-Za-z0-9 _-]+")


def field_role(key: str) -> str | None:
    """Return the role of *key* or ``None`` when it carries no format constraint.

    >>> field_role("FASTLY_PROD_SERVICE_IDS"), field_role("FASTLY_DEV_DEFAULT_KEYS"), field_role("FASTLY_API_URL")
    ('service_ids', 'default_keys', None)
    """

    for suffix, role in _ROLE_SUFFIXES:
        if key.endswith(suffix):
            return role
    return None


def is_display_name_field(key: str) -> bool:
    return field_role(key) == SERVICE_NAMES


def _elements(value: str) -> list[str]:
    return [element.strip() for element in value.split(",")]


def validate_service_ids(field: str, value: str) -> list[str]:
    return [
        f"Invalid service ID format in {field}: '{element}' should only contain "
        "alphanumeric characters, underscores, and hyphens"
        for element in _elements(value)
        if not _IDENTIFIER.fullmatch(element)
    ]


def validate_service_names(field: str, value: str) -> list[str]:
    errors: list[str] = []
    for element in _elements(value):
        if not element:
            errors.append(f"Empty service name found in {field}")
        elif not _DISPLAY_NAME.fullmatch(element):
            errors.append(
                f"Invalid service name format in {field}: '{element}' should only contain "
                "alphanumeric characters, spaces, underscores, and hyphens"
            )
    return errors


def validate_default_keys(field: str, value: str) -> list[str]:
    return [
        f"Invalid default key format in {field}: '{element}' should only contain "
        "alphanumeric characters, underscores, and hyphens"
        for element in _elements(value)
        if not _IDENTIFIER.fullmatch(element)
    ]


_VALIDATORS: Final = {
    SERVICE_IDS: validate_service_ids,
    SERVICE_NAMES: validate_service_names,
    DEFAULT_KEYS: validate_default_keys,
}


def validate_field_format(field: str, value: str) -> list[str]:
    """Dispatch to the validator for the role of *field*; unknown roles pass.

    >>> validate_field_format("FASTLY_DEV_SERVICE_IDS", "svc-1, svc 2")
    ["Invalid service ID format in FASTLY_DEV_SERVICE_IDS: 'svc 2' should only contain alphanumeric characters, underscores, and hyphens"]
    >>> validate_field_format("FASTLY_API_URL", "anything goes")
    []
    """

    role = field_role(field)
    if role is None:
        return []
    return _VALIDATORS[role](field, value)
