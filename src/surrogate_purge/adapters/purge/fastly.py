"""Fastly purge API client.

Purpose
-------
Implement the ``PurgeClient`` port over :mod:`httpx`. Each call issues exactly
one request; failures are never retried and surface as
:class:`~surrogate_purge.domain.errors.PurgeError` with the HTTP status, the
reason phrase and the response body when one was returned.

Contents
--------
* :class:`PurgeResult` – parsed response of one purge request.
* :class:`FastlyPurgeClient` – context-managed client sharing one connection
  pool across the requests of a run.
"""

from __future__ import annotations

from dataclasses import dataclass
from importlib import metadata
from typing import Any, Sequence

import httpx

from ...domain.errors import PurgeError
from ...domain.settings import DEFAULT_API_BASE_URL, DEFAULT_TIMEOUT
from ...observability import log_debug, log_error


def _user_agent() -> str:
    try:
        version = metadata.version("surrogate_purge")
    except metadata.PackageNotFoundError:
        version = "0.0.0"
    return f"surrogate-purge/{version}"


@dataclass(frozen=True, slots=True)
class PurgeResult:
    """Outcome reported by the API for one purge request.

    ``purge_id`` is the identifier Fastly returns for surrogate key and URL
    purges; ``purge_all`` responses only carry a status.
    """

    target: str
    status: str
    purge_id: str | None = None

    @classmethod
    def from_payload(cls, target: str, payload: Any) -> PurgeResult:
        """Build a result from a decoded JSON body (which may be of any shape).

        Examples
        --------
        >>> PurgeResult.from_payload("svc", {"status": "ok", "id": "108-1391560174-974124"}).purge_id
        '108-1391560174-974124'
        >>> PurgeResult.from_payload("svc", ["not", "a", "dict"]).status
        'ok'
        """

        if not isinstance(payload, dict):
            return cls(target=target, status="ok")
        purge_id = payload.get("id")
        return cls(
            target=target,
            status=str(payload.get("status", "ok")),
            purge_id=str(purge_id) if purge_id is not None else None,
        )


class FastlyPurgeClient:
    """Issue purge requests against the Fastly API.

    Why
    ----
    The purge commands run one request per service; a single
    :class:`httpx.Client` keeps the connection pool and the authentication
    headers in one place for the duration of a run.

    Parameters
    ----------
    token:
        API token sent as ``Fastly-Key``. Never logged.
    base_url / timeout:
        API endpoint and per-request timeout in seconds.
    client:
        Pre-built :class:`httpx.Client` (tests pass one with a
        :class:`httpx.MockTransport`). The caller keeps ownership of it.
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Fastly-Key": token,
            "Accept": "application/json",
            "User-Agent": _user_agent(),
        }
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def __enter__(self) -> FastlyPurgeClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def purge_keys(self, service_id: str, keys: Sequence[str]) -> PurgeResult:
        """Purge *keys* from *service_id* with a single batch request."""

        url = f"{self._base_url}/service/{service_id}/purge"
        return self._send("POST", url, service_id, json={"surrogate_keys": list(keys)})

    def purge_all(self, service_id: str) -> PurgeResult:
        """Purge every cached object of *service_id*."""

        url = f"{self._base_url}/service/{service_id}/purge_all"
        return self._send("POST", url, service_id)

    def purge_url(self, url: str) -> PurgeResult:
        """Purge one URL by sending the ``PURGE`` method to the URL itself."""

        return self._send("PURGE", url, url)

    def _send(self, method: str, url: str, target: str, **kwargs: Any) -> PurgeResult:
        log_debug("purge_request", stage="purge", key=target, method=method, url=url)
        try:
            response = self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            log_error("purge_transport_failed", stage="purge", key=target, error=type(exc).__name__)
            raise PurgeError(f"Service {target}: request failed: {exc}") from exc

        if not response.is_success:
            detail = f"Service {target}: HTTP {response.status_code}: {response.reason_phrase}"
            body = response.text.strip()
            if body:
                detail = f"{detail} - {body}"
            log_error("purge_rejected", stage="purge", key=target, status=response.status_code)
            raise PurgeError(detail)

        try:
            payload = response.json()
        except ValueError:
            payload = None
        result = PurgeResult.from_payload(target, payload)
        log_debug("purge_accepted", stage="purge", key=target, status=result.status, purge_id=result.purge_id)
        return result
