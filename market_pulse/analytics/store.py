"""
Analytics snapshot store — loads per-symbol analytics from a JSON table.

File layout (``config/analytics/snapshots.json``)::

    {
      "RELIANCE": {"risk": {...}, "technical": {...}, "market": {...},
                   "earnings": {...}, "liquidity": {...}, "options": {...},
                   "catalysts": [...]},
      ...
      "DEFAULT":  {...}
    }

Every entry is validated into an ``AnalyticsSnapshot`` at load time, so a
malformed table fails with ``pydantic.ValidationError`` before any
recommendation is produced. Symbols without their own entry resolve to the
``DEFAULT`` profile when ``use_default`` is set; otherwise lookup raises
``SnapshotNotFoundError``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator, Mapping

from market_pulse.models.analytics import AnalyticsSnapshot

if TYPE_CHECKING:
    from market_pulse.config import AnalyticsConfig

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "DEFAULT"


class SnapshotNotFoundError(KeyError):
    """No analytics snapshot (and no usable default) for a symbol."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "snapshot not found"


class AnalyticsStore:
    """In-memory, read-only table of analytics snapshots.

    Args:
        snapshots: Mapping of uppercase symbol → snapshot.
        use_default: Resolve unknown symbols to the ``DEFAULT`` profile.
    """

    def __init__(
        self,
        snapshots: Mapping[str, AnalyticsSnapshot],
        use_default: bool = True,
    ) -> None:
        self._snapshots = {k.upper(): v for k, v in snapshots.items()}
        self.use_default = use_default

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], use_default: bool = True) -> "AnalyticsStore":
        """Validate a raw ``{symbol: {...}}`` mapping into a store."""
        snapshots = {
            symbol.upper(): AnalyticsSnapshot(symbol=symbol, **payload)
            for symbol, payload in raw.items()
        }
        return cls(snapshots, use_default=use_default)

    @classmethod
    def from_file(cls, path: Path, use_default: bool = True) -> "AnalyticsStore":
        """Load and validate a snapshot table from a JSON file.

        Raises:
            FileNotFoundError: If ``path`` does not exist.
            json.JSONDecodeError: If the file is not valid JSON.
            pydantic.ValidationError: If any entry is missing a field.
        """
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: expected a JSON object keyed by symbol.")
        store = cls.from_dict(raw, use_default=use_default)
        logger.debug("Loaded %d analytics snapshots from %s", len(store), path)
        return store

    @classmethod
    def from_config(cls, config: "AnalyticsConfig") -> "AnalyticsStore":
        from market_pulse.config import resolve_path

        return cls.from_file(
            resolve_path(config.snapshot_file),
            use_default=config.use_default_snapshot,
        )

    def get(self, symbol: str) -> AnalyticsSnapshot:
        """Return the snapshot for ``symbol``.

        Falls back to the ``DEFAULT`` profile (re-labelled with ``symbol``)
        when enabled.

        Raises:
            SnapshotNotFoundError: If neither exists.
        """
        key = symbol.strip().upper()
        snapshot = self._snapshots.get(key)
        if snapshot is not None:
            return snapshot
        if self.use_default and DEFAULT_PROFILE in self._snapshots:
            logger.debug("No analytics for %s; using %s profile", key, DEFAULT_PROFILE)
            return self._snapshots[DEFAULT_PROFILE].model_copy(update={"symbol": key})
        raise SnapshotNotFoundError(f"No analytics snapshot for '{key}'.")

    def has_own_snapshot(self, symbol: str) -> bool:
        return symbol.strip().upper() in self._snapshots

    def symbols(self) -> list[str]:
        """Symbols with their own entry, excluding the ``DEFAULT`` profile."""
        return sorted(k for k in self._snapshots if k != DEFAULT_PROFILE)

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[str]:
        return iter(self.symbols())
