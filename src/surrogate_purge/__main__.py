"""``python -m surrogate_purge`` runs the surrogate-purge command line."""

from __future__ import annotations

from .cli import main

if __name__ == "__main__":  # pragma: no cover - exercised via python -m
    raise SystemExit(main())
