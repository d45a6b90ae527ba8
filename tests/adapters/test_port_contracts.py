"""The default adapters must satisfy the application-layer ports."""

from __future__ import annotations

import httpx

from surrogate_purge.adapters.console import ConsoleLogger
from surrogate_purge.adapters.env.default import LiveEnvironment, ServiceDiscovery
from surrogate_purge.adapters.purge.fastly import FastlyPurgeClient
from surrogate_purge.adapters.shell_rc.default import MarkerShellConfigWriter
from surrogate_purge.application import ports
from surrogate_purge.security.escaping import BashEscaper, CmdEscaper, PowerShellEscaper
from tests.support import FakeEnvironment, FakePurgeClient, RecordingLogger, RecordingWriter


def test_live_environment_contract() -> None:
    assert isinstance(LiveEnvironment(environ={}), ports.Environment)


def test_service_discovery_contract() -> None:
    assert isinstance(ServiceDiscovery(LiveEnvironment(environ={})), ports.ServiceDirectory)


def test_console_logger_contract() -> None:
    assert isinstance(ConsoleLogger(), ports.Logger)


def test_escaper_contracts() -> None:
    for escaper in (BashEscaper(), CmdEscaper(), PowerShellEscaper()):
        assert isinstance(escaper, ports.ShellEscaper)


def test_shell_writer_contract() -> None:
    assert isinstance(MarkerShellConfigWriter(), ports.ShellConfigWriter)


def test_fastly_client_contract() -> None:
    http = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    with FastlyPurgeClient("t", client=http) as client:
        assert isinstance(client, ports.PurgeClient)
    http.close()


def test_test_doubles_match_the_ports() -> None:
    assert isinstance(FakeEnvironment(), ports.Environment)
    assert isinstance(RecordingLogger(), ports.Logger)
    assert isinstance(RecordingWriter(), ports.ShellConfigWriter)
    assert isinstance(FakePurgeClient(), ports.PurgeClient)
