"""Persistent cache for per-file extraction results."""

from __future__ import annotations

import json
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, Iterable, Optional

from ..models import ComponentRecord
from .snapshot_store import component_from_dict, component_to_dict

_CACHE_VERSION = 1


class ExtractionCache:
    """Stores component records keyed by file path and content fingerprint."""

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._entries: Dict[str, Dict[str, object]] = {}
        self._dirty = False
        self._lock = threading.Lock()
        if self._path is not None:
            self._load(self._path)

    def get(self, key: str, *, signature: str, fingerprint: str) -> Optional[ComponentRecord]:
        with self._lock:
            entry = self._entries.get(key)
        if not entry:
            return None
        if entry.get("signature") != signature:
            return None
        if entry.get("fingerprint") != fingerprint:
            return None
        try:
            return component_from_dict(entry.get("record"))
        except ValueError:
            return None

    def store(
        self,
        key: str,
        *,
        signature: str,
        fingerprint: str,
        record: ComponentRecord,
    ) -> None:
        entry = {
            "signature": signature,
            "fingerprint": fingerprint,
            "record": component_to_dict(record),
            "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }
        with self._lock:
            self._entries[key] = entry
            self._dirty = True

    def prune(self, keys_to_keep: Iterable[str]) -> None:
        keep = set(keys_to_keep)
        with self._lock:
            removed = [key for key in self._entries if key not in keep]
            if removed:
                for key in removed:
                    self._entries.pop(key, None)
                self._dirty = True

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        with self._lock:
            payload = {
                "version": _CACHE_VERSION,
                "entries": self._entries,
            }
            text = json.dumps(payload, indent=2, sort_keys=True)
            self._dirty = False
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(text, encoding="utf-8")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._dirty = True

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            return
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            return
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return
        valid_entries: Dict[str, Dict[str, object]] = {}
        for key, raw in entries.items():
            if not isinstance(key, str) or not isinstance(raw, dict):
                continue
            if "signature" not in raw or "fingerprint" not in raw or not isinstance(raw.get("record"), dict):
                continue
            valid_entries[key] = raw
        self._entries = valid_entries
        self._dirty = False


__all__ = ["ExtractionCache"]
