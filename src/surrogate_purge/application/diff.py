"""Environment diff engine.

Compares a proposed configuration with the live environment before anything is
materialised. The comparison is read-only: the environment is reached only
through the :class:`~surrogate_purge.application.ports.Environment` port and is
never modified.
"""

from __future__ import annotations

from typing import Mapping

from ..domain.config import ChangedVar, DiffClassification, is_credential_key
from ..domain.settings import Settings
from ..observability import log_debug, make_event
from .ports import Environment


def analyze_environment(
    proposed: Mapping[str, str],
    environment: Environment,
    *,
    settings: Settings | None = None,
) -> DiffClassification:
    """Classify every provided entry of *proposed* as new, changed or unchanged.

    ``existing_vars`` lists the live namespace keys (sorted, credentials
    excluded) for information only; it does not influence the classification.

    Examples
    --------
    >>> class _Env:
    ...     def __init__(self, data): self.data = data
    ...     def get(self, key): return self.data.get(key)
    ...     def keys_with_prefix(self, prefix): return [k for k in self.data if k.startswith(prefix)]
    >>> live = _Env({"FASTLY_DEV_SERVICE_IDS": "old", "FASTLY_TOKEN": "secret"})
    >>> diff = analyze_environment({"FASTLY_DEV_SERVICE_IDS": "new", "FASTLY_DEFAULT_KEYS": "k"}, live)
    >>> diff.existing_vars, diff.new_vars, diff.changed_vars[0].old
    (('FASTLY_DEV_SERVICE_IDS',), ('FASTLY_DEFAULT_KEYS',), 'old')
    """

    active = settings or Settings()
    existing = tuple(
        sorted(key for key in environment.keys_with_prefix(active.prefix) if not is_credential_key(key))
    )

    new_vars: list[str] = []
    changed_vars: list[ChangedVar] = []
    unchanged_vars: list[str] = []
    for key, value in proposed.items():
        if not value:
            continue
        current = environment.get(key)
        if current is None or current == "":
            new_vars.append(key)
        elif current != value:
            changed_vars.append(ChangedVar(key=key, old=current, new=value))
        else:
            unchanged_vars.append(key)

    diff = DiffClassification(
        existing_vars=existing,
        new_vars=tuple(new_vars),
        changed_vars=tuple(changed_vars),
        unchanged_vars=tuple(unchanged_vars),
    )
    log_debug(
        "environment_analyzed",
        **make_event(
            "diff",
            None,
            {
                "existing": len(diff.existing_vars),
                "new": len(diff.new_vars),
                "changed": len(diff.changed_vars),
                "unchanged": len(diff.unchanged_vars),
            },
        ),
    )
    return diff
