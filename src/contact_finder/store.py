"""JSON file persistence for contacts, history, favorites and alerts."""

from __future__ import annotations

import json
import os
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .errors import StoreError
from .models import Contact, MonitoringAlert, SearchHistoryEntry

DOCUMENT_KEYS = ("contacts", "history", "favorites", "alerts")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _new_id() -> str:
    return uuid.uuid4().hex


class JsonFileStore:
    """Single-file store; every operation reads and rewrites the document.

    Writes go to a sibling temp file first and replace the original, so a
    crash never leaves a half-written document behind.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {"contacts": {}, "history": [], "favorites": [], "alerts": []}
        try:
            with self._path.open("r", encoding="utf-8") as file_obj:
                document = json.load(file_obj)
        except (OSError, ValueError) as exc:
            raise StoreError(f"Cannot read store {self._path}: {exc}") from exc
        if not isinstance(document, dict):
            raise StoreError(f"Store {self._path} does not hold a JSON object.")
        for key in DOCUMENT_KEYS:
            document.setdefault(key, {} if key == "contacts" else [])
        return document

    def _save(self, document: dict[str, Any]) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as file_obj:
                json.dump(document, file_obj, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise StoreError(f"Cannot write store {self._path}: {exc}") from exc

    def save_search_results(self, contacts: list[Contact]) -> None:
        """Upsert contacts by id."""
        with self._lock:
            document = self._load()
            now = _now_iso()
            for contact in contacts:
                previous = document["contacts"].get(contact.id, {})
                document["contacts"][contact.id] = {
                    **contact.to_dict(),
                    "createdAt": previous.get("createdAt", now),
                    "updatedAt": now,
                }
            self._save(document)

    def get_contacts(self) -> list[Contact]:
        with self._lock:
            document = self._load()
        return [Contact.from_dict(payload) for payload in document["contacts"].values()]

    def save_search_history(self, entry: SearchHistoryEntry) -> str:
        entry_id = _new_id()
        payload = {**entry.to_dict(), "id": entry_id, "timestamp": entry.timestamp or _now_iso()}
        with self._lock:
            document = self._load()
            document["history"].append(payload)
            self._save(document)
        return entry_id

    def get_search_history(self, limit: int = 10) -> list[SearchHistoryEntry]:
        """Most recent entries first."""
        with self._lock:
            document = self._load()
        entries = sorted(
            document["history"], key=lambda item: item.get("timestamp", ""), reverse=True
        )
        return [SearchHistoryEntry.from_dict(item) for item in entries[:limit]]

    def clear_search_history(self) -> None:
        with self._lock:
            document = self._load()
            document["history"] = []
            self._save(document)

    def toggle_favorite(self, contact_id: str) -> bool:
        """Add or remove a favorite; returns True when it is now a favorite."""
        with self._lock:
            document = self._load()
            favorites: list[str] = document["favorites"]
            if contact_id in favorites:
                favorites.remove(contact_id)
                added = False
            else:
                favorites.append(contact_id)
                added = True
            self._save(document)
        return added

    def get_favorites(self) -> list[str]:
        with self._lock:
            return list(self._load()["favorites"])

    def create_alert(self, keyword: str, email: str) -> str:
        alert = MonitoringAlert(id=_new_id(), keyword=keyword, email=email)
        with self._lock:
            document = self._load()
            document["alerts"].append(alert.to_dict())
            self._save(document)
        return alert.id

    def get_alerts(self) -> list[MonitoringAlert]:
        with self._lock:
            document = self._load()
        return [MonitoringAlert.from_dict(item) for item in document["alerts"]]

    def get_active_alerts(self) -> list[MonitoringAlert]:
        return [alert for alert in self.get_alerts() if alert.is_active]

    def _update_alert(self, alert_id: str, **changes: Any) -> None:
        with self._lock:
            document = self._load()
            for item in document["alerts"]:
                if item.get("id") == alert_id:
                    item.update(changes)
                    break
            else:
                raise StoreError(f"Unknown alert: {alert_id}")
            self._save(document)

    def update_alert_last_check(self, alert_id: str, timestamp: str) -> None:
        self._update_alert(alert_id, lastCheck=timestamp)

    def deactivate_alert(self, alert_id: str) -> None:
        self._update_alert(alert_id, isActive=False)
