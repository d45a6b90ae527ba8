"""Codec tests: round-trip law, strict decoding and the validation gate."""

from __future__ import annotations

import base64

import pytest
from hypothesis import given
from hypothesis import strategies as st

from surrogate_purge.application.codec import decode_setup_string, encode_setup_string
from surrogate_purge.domain.errors import InvalidSetupConfiguration, SecurityValidationError
from tests.support import NS_SETTINGS, RecordingLogger

IDENTIFIERS = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789-_", min_size=1, max_size=20)
NAMES = st.text(alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghij0123456789", min_size=1, max_size=12)
VALID_CONFIGS = st.fixed_dictionaries(
    {},
    optional={
        "NS_DEV_SERVICE_IDS": st.lists(IDENTIFIERS, min_size=1, max_size=3).map(",".join),
        "NS_PROD_SERVICE_IDS": st.lists(IDENTIFIERS, min_size=1, max_size=3).map(",".join),
        "NS_DEV_SERVICE_NAMES": st.lists(NAMES, min_size=1, max_size=3).map(" ".join),
        "NS_DEFAULT_KEYS": st.lists(IDENTIFIERS, min_size=1, max_size=3).map(",".join),
        "NS_TEST_DEFAULT_KEYS": st.just(""),
    },
)


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def test_round_trip_of_service_ids() -> None:
    config = {"NS_DEV_SERVICE_IDS": "dev-svc-1,dev-svc-2"}
    assert decode_setup_string(encode_setup_string(config), settings=NS_SETTINGS, shell="bash") == config


def test_encoded_string_uses_base64_alphabet_only() -> None:
    encoded = encode_setup_string({"NS_DEV_SERVICE_NAMES": "Entwicklung Süd"})
    assert set(encoded) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/=")


def test_empty_values_survive_the_round_trip() -> None:
    config = {"NS_DEV_SERVICE_IDS": "svc", "NS_DEFAULT_KEYS": ""}
    decoded = decode_setup_string(encode_setup_string(config), settings=NS_SETTINGS, shell="bash")
    assert decoded == config
    assert "NS_DEFAULT_KEYS" in decoded


def test_surrounding_whitespace_is_ignored() -> None:
    encoded = encode_setup_string({"NS_DEV_SERVICE_IDS": "svc"})
    assert decode_setup_string(f"  {encoded}\n", settings=NS_SETTINGS, shell="bash") == {"NS_DEV_SERVICE_IDS": "svc"}


@pytest.mark.parametrize(
    "encoded, cause",
    [
        ("not base64!!", "payload is not valid base64"),
        ("eyJhIjo", "payload is not valid base64"),
        (base64.b64encode(b"\xff\xfe").decode("ascii"), "payload is not valid UTF-8 text"),
        (_b64("{not json"), "payload is not valid JSON"),
        (_b64("[1, 2]"), "payload must be a JSON object"),
        (_b64('{"NS_A": 1}'), "value of 'NS_A' must be a string"),
        ("   ", "setup string is empty"),
    ],
)
def test_malformed_input_raises_generic_error(encoded: str, cause: str) -> None:
    with pytest.raises(InvalidSetupConfiguration) as excinfo:
        decode_setup_string(encoded, settings=NS_SETTINGS, shell="bash")
    assert str(excinfo.value) == f"Invalid setup configuration: {cause}"
    assert not isinstance(excinfo.value, SecurityValidationError)


def test_command_substitution_fails_security_validation() -> None:
    encoded = encode_setup_string({"NS_DEV_SERVICE_IDS": "service$(whoami)"})
    with pytest.raises(SecurityValidationError, match="Security validation failed") as excinfo:
        decode_setup_string(encoded, settings=NS_SETTINGS, shell="bash")
    assert not excinfo.value.result.is_valid
    assert str(excinfo.value).startswith("Invalid setup configuration: Security validation failed: ")


def test_warnings_are_forwarded_to_the_logger() -> None:
    logger = RecordingLogger()
    encoded = encode_setup_string({"NS_DEFAULT_KEYS": "curl-cache"})
    config = decode_setup_string(encoded, settings=NS_SETTINGS, shell="bash", logger=logger)
    assert config == {"NS_DEFAULT_KEYS": "curl-cache"}
    assert logger.messages("warn") == ["Security warnings: Suspicious content in NS_DEFAULT_KEYS: contains 'curl'"]


@given(VALID_CONFIGS)
def test_round_trip_law(config: dict[str, str]) -> None:
    assert decode_setup_string(encode_setup_string(config), settings=NS_SETTINGS, shell="bash") == config


@given(st.sampled_from(["$(", "`", ";", "|", "&", "\x01", "\x1f"]))
def test_injection_payloads_never_decode(payload: str) -> None:
    encoded = encode_setup_string({"NS_DEV_SERVICE_IDS": f"svc{payload}id"})
    with pytest.raises(SecurityValidationError, match="Security validation failed"):
        decode_setup_string(encoded, settings=NS_SETTINGS, shell="bash")


@pytest.mark.parametrize("shell", ["cmd", "pwsh"])
def test_multi_line_values_never_leave_the_decoder(shell: str) -> None:
    encoded = encode_setup_string({"NS_API_HOST": "a\nexport NS_OTHER=1"})
    with pytest.raises(SecurityValidationError):
        decode_setup_string(encoded, settings=NS_SETTINGS, shell=shell)
