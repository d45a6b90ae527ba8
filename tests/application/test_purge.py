"""Purge orchestration tests with an in-memory client."""

from __future__ import annotations

import pytest

from surrogate_purge.adapters.env.default import LiveEnvironment, ServiceDiscovery
from surrogate_purge.application.purge import PurgeOptions, display_name, execute_purge
from surrogate_purge.domain.errors import PurgeError
from tests.support import NS_SETTINGS, FakePurgeClient, RecordingLogger

ENVIRON = {
    "NS_TOKEN": "secret-token",
    "NS_DEV_SERVICE_IDS": "svc-a,svc-b",
    "NS_DEV_SERVICE_NAMES": "Frontend,API",
    "NS_DEFAULT_KEYS": "global",
}


def _purge(keys, options: PurgeOptions, *, environ=None, client: FakePurgeClient | None = None):
    logger = RecordingLogger()
    client = client or FakePurgeClient()
    tokens: list[str] = []

    def factory(token: str) -> FakePurgeClient:
        tokens.append(token)
        return client

    report = execute_purge(
        keys,
        options,
        logger,
        directory=ServiceDiscovery(LiveEnvironment(environ=ENVIRON if environ is None else environ), settings=NS_SETTINGS),
        client_factory=factory,
        settings=NS_SETTINGS,
    )
    return report, logger, client, tokens


def test_keys_are_purged_on_every_service_with_default_keys_first() -> None:
    report, logger, client, tokens = _purge(["article-1"], PurgeOptions(env="dev"))
    assert report.success
    assert tokens == ["secret-token"]
    assert client.calls == [
        ("keys", ("svc-a", ("global", "article-1"))),
        ("keys", ("svc-b", ("global", "article-1"))),
    ]
    assert client.closed
    assert "Service names: Frontend (svc-a), API (svc-b)" in logger.messages("info")
    assert "All keys to purge: global, article-1" in logger.messages("info")
    assert "[svc-a] Purged successfully (ID: id-svc-a)" in logger.messages("success")
    assert "Purge completed: 2/2 targets successful" in logger.messages("info")


def test_purge_all_uses_purge_all_endpoint() -> None:
    report, _, client, _ = _purge([], PurgeOptions(env="dev", purge_all=True))
    assert report.success
    assert client.calls == [("all", "svc-a"), ("all", "svc-b")]


def test_failing_service_does_not_stop_the_others() -> None:
    report, logger, client, _ = _purge(["k"], PurgeOptions(env="dev"), client=FakePurgeClient(failing={"svc-a"}))
    assert not report.success
    assert [item.success for item in report.results] == [False, True]
    assert report.results[0].error == "Service svc-a: HTTP 500: Internal Server Error"
    assert len(client.calls) == 2
    assert "[svc-a] Service svc-a: HTTP 500: Internal Server Error" in logger.messages("error")
    assert "Purge completed: 1/2 targets successful" in logger.messages("info")


def test_dry_run_never_builds_a_client() -> None:
    report, logger, client, tokens = _purge(["k"], PurgeOptions(env="dev", dry_run=True), environ={"NS_DEV_SERVICE_IDS": "svc-a"})
    assert report.success
    assert tokens == [] and client.calls == []
    assert "DRY RUN MODE - No actual purging will occur" in logger.messages("warn")
    assert "[svc-a] Would purge keys: k" in logger.messages("info")


def test_services_override_skips_discovery_names() -> None:
    _, logger, client, _ = _purge(["k"], PurgeOptions(env="dev", services="x1, x2"))
    assert [call[1][0] for call in client.calls] == ["x1", "x2"]
    assert "Service IDs (from command line --services): x1, x2" in logger.messages("info")
    assert not any(message.startswith("Service names") for message in logger.messages("info"))


def test_urls_are_purged_individually() -> None:
    report, _, client, _ = _purge([], PurgeOptions(urls=("https://www.example.com/a",)))
    assert report.success
    assert client.calls == [("url", "https://www.example.com/a")]


@pytest.mark.parametrize(
    "keys, options, message",
    [
        (["k"], PurgeOptions(purge_all=True), "Cannot use --all flag with specific keys"),
        ([], PurgeOptions(), "At least one surrogate key is required (or use --all flag)"),
        (["  "], PurgeOptions(), "At least one surrogate key is required (or use --all flag)"),
        (["k"], PurgeOptions(env="prod"), "No service IDs configured for environment: prod. Set NS_PROD_SERVICE_IDS"),
        (["k"], PurgeOptions(services=" , "), "Services parameter cannot be empty"),
    ],
)
def test_argument_errors(keys, options: PurgeOptions, message: str) -> None:
    with pytest.raises(PurgeError, match=message.replace("(", r"\(").replace(")", r"\)").replace(".", r"\.")):
        _purge(keys, options)


def test_missing_token_is_an_error() -> None:
    with pytest.raises(PurgeError, match="NS_TOKEN environment variable is required"):
        _purge(["k"], PurgeOptions(env="dev"), environ={"NS_DEV_SERVICE_IDS": "svc-a"})


def test_display_name_falls_back_to_id() -> None:
    assert display_name("b", ["Frontend", "API"], ["a", "b"]) == "API (b)"
    assert display_name("c", ["Frontend"], ["a", "c"]) == "c"
    assert display_name("z", ["Frontend"], ["a"]) == "z"
