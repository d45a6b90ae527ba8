"""Shell export command synthesis."""

from __future__ import annotations

from typing import Iterable, Mapping


def generate_export_commands(config: Mapping[str, str], export_keys: Iterable[str] | None = None) -> list[str]:
    """Return ``export KEY="VALUE"`` statements for the provided entries of *config*.

    Values are inserted verbatim: they have already passed the configuration
    validator, and :func:`~surrogate_purge.application.validation.validate_export_commands`
    checks the output again. ``export_keys`` restricts the output to the listed
    keys; order follows *config*.

    Examples
    --------
    >>> generate_export_commands({"FASTLY_DEV_SERVICE_IDS": "a,b", "FASTLY_DEFAULT_KEYS": ""})
    ['export FASTLY_DEV_SERVICE_IDS="a,b"']
    >>> generate_export_commands({"FASTLY_DEV_SERVICE_IDS": "a", "FASTLY_DEFAULT_KEYS": "k"}, ["FASTLY_DEFAULT_KEYS"])
    ['export FASTLY_DEFAULT_KEYS="k"']
    """

    allowed = None if export_keys is None else set(export_keys)
    return [
        f'export {key}="{value}"'
        for key, value in config.items()
        if value and (allowed is None or key in allowed)
    ]
