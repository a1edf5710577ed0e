"""Saved-QR gallery on top of a JSON key-value store.

The whole list is re-serialized under one fixed key on every mutation.
"""

import json
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from qrstudio.errors import GalleryEntryNotFound
from qrstudio.logging import audit, get_logger, trace
from qrstudio.style import StyleConfig

log = get_logger("gallery")

GALLERY_KEY = "pickleplay_saved_qrs_v2"


# ---------------------------------------------------------------------------
# Key-value stores
# ---------------------------------------------------------------------------

class MemoryStore:
    """In-process key-value store holding JSON-serialized strings."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """Key-value store persisted as one JSON object on disk. Thread-safe."""

    def __init__(self, path: str | Path = "qrstudio_gallery.json"):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data: dict[str, str] = {}
        if self.path.exists():
            with open(self.path, encoding="utf-8") as f:
                self._data = json.load(f)
            log.info("Loaded store from %s (%d keys)", self.path, len(self._data))

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)


# ---------------------------------------------------------------------------
# Gallery
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SavedEntry:
    id: str
    config: StyleConfig
    created_at: str

    def to_dict(self) -> dict:
        return {"id": self.id, "config": self.config.to_dict(), "createdAt": self.created_at}

    @classmethod
    def from_dict(cls, data: dict) -> "SavedEntry":
        return cls(
            id=data["id"],
            config=StyleConfig.from_dict(data["config"]),
            created_at=data.get("createdAt") or data.get("created_at", ""),
        )


class Gallery:
    """Saved configurations, newest first."""

    def __init__(self, store=None, key: str = GALLERY_KEY):
        self.store = store if store is not None else MemoryStore()
        self.key = key
        self._entries: list[SavedEntry] = self._load()

    def _load(self) -> list[SavedEntry]:
        raw = self.store.get(self.key)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError:
            log.warning("Gallery data under %r is malformed; starting empty", self.key)
            return []
        entries = []
        for item in items:
            try:
                entries.append(SavedEntry.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                log.warning("Skipping unreadable saved entry: %s", e)
        return entries

    def _persist(self) -> None:
        self.store.set(self.key, json.dumps([e.to_dict() for e in self._entries]))

    def _new_id(self) -> str:
        stamp = int(time.time() * 1000)
        taken = {e.id for e in self._entries}
        while f"qr_{stamp}" in taken:
            stamp += 1
        return f"qr_{stamp}"

    @property
    def entries(self) -> tuple[SavedEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @trace
    def save(self, config: StyleConfig) -> SavedEntry:
        """Snapshot *config* at the front of the gallery."""
        entry = SavedEntry(
            id=self._new_id(),
            config=config,
            created_at=datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        )
        self._entries.insert(0, entry)
        self._persist()
        audit("gallery.saved", logger=log, id=entry.id, label=config.label, total=len(self._entries))
        return entry

    def get(self, entry_id: str) -> SavedEntry:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        raise GalleryEntryNotFound(entry_id)

    @trace
    def load(self, entry_id: str) -> StyleConfig:
        """The saved configuration; StyleConfig is immutable so edits never touch the snapshot."""
        config = self.get(entry_id).config
        audit("gallery.loaded", logger=log, id=entry_id)
        return config

    @trace
    def delete(self, entry_id: str) -> None:
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.id != entry_id]
        if len(self._entries) == before:
            raise GalleryEntryNotFound(entry_id)
        self._persist()
        audit("gallery.deleted", logger=log, id=entry_id, total=len(self._entries))
