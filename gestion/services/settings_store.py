"""Persisted user preferences and session data.

:class:`LocalStore` is a small JSON-file key-value store holding string
values under fixed keys (the signed-in ``account`` and the
``inventory_settings`` preferences). Values are read when a page builds its
controller; the controller itself never persists anything.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from gestion.core.constants import (
    ALLOWED_REFRESH_INTERVALS,
    REFRESH_OFF,
    STORAGE_ACCOUNT,
    STORAGE_INVENTORY_SETTINGS,
)

logger = logging.getLogger(__name__)


class LocalStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError):
            logger.exception("Could not read storage file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh)

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if data.pop(key, None) is not None:
                self._write(data)

    def clear(self) -> None:
        with self._lock:
            self._write({})


@dataclass(frozen=True)
class InventorySettings:
    refresh_interval: int = REFRESH_OFF  # milliseconds

    @property
    def refresh_seconds(self) -> Optional[float]:
        """Polling period in seconds, or ``None`` when polling is off."""
        if self.refresh_interval == REFRESH_OFF:
            return None
        return self.refresh_interval / 1000


def load_inventory_settings(store: LocalStore) -> InventorySettings:
    """Return stored inventory settings, falling back to defaults."""

    raw = store.get_item(STORAGE_INVENTORY_SETTINGS)
    if not raw:
        return InventorySettings()
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Ignoring malformed inventory settings")
        return InventorySettings()
    interval = data.get("refreshInterval", REFRESH_OFF) if isinstance(data, dict) else REFRESH_OFF
    if interval not in ALLOWED_REFRESH_INTERVALS:
        interval = REFRESH_OFF
    return InventorySettings(refresh_interval=interval)


def update_inventory_settings(store: LocalStore, **updates: Any) -> InventorySettings:
    current = asdict(load_inventory_settings(store))
    current.update(updates)
    if current["refresh_interval"] not in ALLOWED_REFRESH_INTERVALS:
        raise ValueError(f"Unsupported refresh interval: {current['refresh_interval']}")
    settings = InventorySettings(**current)
    store.set_item(
        STORAGE_INVENTORY_SETTINGS,
        json.dumps({"refreshInterval": settings.refresh_interval}),
    )
    return settings


def clear_inventory_settings(store: LocalStore) -> InventorySettings:
    store.remove_item(STORAGE_INVENTORY_SETTINGS)
    return InventorySettings()


def load_account(store: LocalStore) -> Optional[Dict[str, Any]]:
    raw = store.get_item(STORAGE_ACCOUNT)
    if not raw:
        return None
    try:
        account = json.loads(raw)
    except ValueError:
        logger.warning("Ignoring malformed stored account")
        return None
    return account if isinstance(account, dict) else None
