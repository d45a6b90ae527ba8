"""Purge orchestration.

Purpose
-------
Turn the ``purge`` command's arguments into purge requests: resolve the target
services, combine default and user supplied surrogate keys, issue one request
per target through the :class:`~surrogate_purge.application.ports.PurgeClient`
port and summarise the outcome.

Contents
--------
* :class:`PurgeOptions` – target environment, service override and mode flags.
* :class:`TargetOutcome` / :class:`PurgeReport` – per-target and overall result.
* :func:`execute_purge` – the orchestrator.
* :func:`display_name` – ``"Name (id)"`` rendering of a service.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from ..domain.errors import PurgeError
from ..domain.settings import Settings
from ..observability import log_info, log_warning, make_event, new_trace_id
from .ports import Logger, PurgeClient, ServiceDirectory

#: Builds a client once the token is known; dry runs never call it.
ClientFactory = Callable[[str], PurgeClient]


@dataclass(frozen=True, slots=True)
class PurgeOptions:
    """Arguments of one purge run.

    ``services`` is the raw ``--services`` text and overrides discovery.
    ``urls`` are purged individually and may be combined with keys.
    """

    env: str = "dev"
    services: str | None = None
    dry_run: bool = False
    purge_all: bool = False
    urls: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class TargetOutcome:
    target: str
    success: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class PurgeReport:
    """Overall result; ``success`` is false when any request failed."""

    success: bool
    results: tuple[TargetOutcome, ...] = ()

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.results if item.success)


@dataclass(frozen=True, slots=True)
class _Plan:
    services: tuple[str, ...]
    keys: tuple[str, ...]
    urls: tuple[str, ...]


def execute_purge(
    user_keys: Sequence[str],
    options: PurgeOptions,
    logger: Logger,
    *,
    directory: ServiceDirectory,
    client_factory: ClientFactory,
    settings: Settings | None = None,
) -> PurgeReport:
    """Purge surrogate keys, whole services or URLs.

    Why
    ----
    Purges are issued per service; one failing service must not hide the
    outcome of the others, so failures are collected instead of raised.

    Parameters
    ----------
    user_keys:
        Surrogate keys from the command line.
    options:
        See :class:`PurgeOptions`.
    logger:
        User-facing output sink.
    directory:
        Resolves services, display names, default keys and the token.
    client_factory:
        Called with the API token to obtain the client. Not called on dry runs.
    settings:
        Supplies the token variable name for error messages.

    Raises
    ------
    PurgeError
        Invalid argument combinations, no configured services, or a missing
        token. Request failures are reported per target instead.
    """

    active = settings or Settings()
    new_trace_id()
    plan = _build_plan(user_keys, options, logger, directory)
    if options.dry_run:
        logger.warn("DRY RUN MODE - No actual purging will occur")
        return _dry_run(plan, options, logger)

    token = directory.token()
    if not token:
        raise PurgeError(f"{active.token_key} environment variable is required")

    log_info("purge_started", **make_event("purge", None, {"env": options.env, "services": len(plan.services)}))
    outcomes: list[TargetOutcome] = []
    client = client_factory(token)
    try:
        for service_id in plan.services:
            if options.purge_all:
                outcome = _attempt(logger, service_id, client.purge_all, "Purged ALL cache successfully")
            else:
                outcome = _attempt(
                    logger,
                    service_id,
                    lambda target: client.purge_keys(target, plan.keys),
                    "Purged successfully",
                )
            outcomes.append(outcome)
        for url in plan.urls:
            outcomes.append(_attempt(logger, url, client.purge_url, "Purged URL successfully"))
    finally:
        client.close()

    report = PurgeReport(success=all(item.success for item in outcomes), results=tuple(outcomes))
    logger.info(f"Purge completed: {report.succeeded}/{len(outcomes)} targets successful")
    return report


def display_name(service_id: str, names: Sequence[str], ids: Sequence[str]) -> str:
    """Return ``"Name (id)"`` when a name exists at the id's position, else the id.

    >>> display_name("b", ["Frontend", "API"], ["a", "b"])
    'API (b)'
    >>> display_name("c", ["Frontend"], ["a", "c"])
    'c'
    """

    if service_id in ids:
        index = list(ids).index(service_id)
        if index < len(names) and names[index]:
            return f"{names[index]} ({service_id})"
    return service_id


def _build_plan(user_keys: Sequence[str], options: PurgeOptions, logger: Logger, directory: ServiceDirectory) -> _Plan:
    """Validate the argument combination, resolve targets and log the plan."""

    keys = [key.strip() for key in user_keys if key.strip()]
    urls = tuple(url.strip() for url in options.urls if url.strip())
    if options.purge_all and keys:
        raise PurgeError("Cannot use --all flag with specific keys")
    if not options.purge_all and not keys and not urls:
        raise PurgeError("At least one surrogate key is required (or use --all flag)")

    services: list[str] = []
    all_keys: list[str] = []
    if options.purge_all or keys:
        services = directory.service_ids(options.env, options.services)
        overridden = bool(options.services and options.services.strip())
        source = "command line --services" if overridden else f"environment variables for {options.env}"
        logger.info(f"Target environment: {options.env}")
        logger.info(f"Service IDs (from {source}): {', '.join(services)}")
        names = [] if overridden else directory.service_names(options.env)
        if names:
            logger.info(f"Service names: {', '.join(display_name(sid, names, services) for sid in services)}")

        if options.purge_all:
            logger.info("Operation: Purge ALL cache for services")
        else:
            default_keys = directory.default_keys(options.env)
            all_keys = [*default_keys, *keys]
            logger.info(f"User keys: {', '.join(keys)}")
            if default_keys:
                logger.info(f"Default keys: {', '.join(default_keys)}")
            logger.info(f"All keys to purge: {', '.join(all_keys)}")
    if urls:
        logger.info(f"URLs: {', '.join(urls)}")
    return _Plan(services=tuple(services), keys=tuple(all_keys), urls=urls)


def _dry_run(plan: _Plan, options: PurgeOptions, logger: Logger) -> PurgeReport:
    outcomes: list[TargetOutcome] = []
    for service_id in plan.services:
        if options.purge_all:
            logger.info(f"[{service_id}] Would purge ALL cache")
        else:
            logger.info(f"[{service_id}] Would purge keys: {', '.join(plan.keys)}")
        outcomes.append(TargetOutcome(target=service_id, success=True))
    for url in plan.urls:
        logger.info(f"[{url}] Would purge URL")
        outcomes.append(TargetOutcome(target=url, success=True))
    operation = "purge ALL cache for" if options.purge_all else "purge keys from"
    logger.info(f"Dry run completed. Would have attempted to {operation} {len(plan.services)} services.")
    return PurgeReport(success=True, results=tuple(outcomes))


def _attempt(logger: Logger, target: str, request: Callable[[str], object], done: str) -> TargetOutcome:
    try:
        result = request(target)
    except PurgeError as exc:
        log_warning("purge_target_failed", stage="purge", key=target)
        logger.error(f"[{target}] {exc}")
        return TargetOutcome(target=target, success=False, error=str(exc))
    purge_id = getattr(result, "purge_id", None)
    suffix = f" (ID: {purge_id})" if purge_id else ""
    logger.success(f"[{target}] {done}{suffix}")
    return TargetOutcome(target=target, success=True)
