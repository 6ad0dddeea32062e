from __future__ import annotations

import hashlib
import json
import os
import time
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Optional

from app.infra.settings import settings

_DEFAULT_DIR = Path(__file__).resolve().parents[2] / ".cache" / "ttl"


def _namespace_dir(namespace: str) -> Path:
    ns = "".join(ch for ch in (namespace or "") if ch.isalnum() or ch in ("_", "-")) or "default"
    base = Path(settings.projector_cache_dir) if settings.projector_cache_dir else _DEFAULT_DIR
    return base / ns


def _entry_path(namespace: str, key: str) -> Path:
    return _namespace_dir(namespace) / f"{hashlib.sha1(key.encode('utf-8')).hexdigest()}.json"


def load_ttl_cache(namespace: str, key: str) -> Optional[Any]:
    """
    Return cached data if present and unexpired; otherwise None.
    Expired entries are removed on read.
    """
    path = _entry_path(namespace, key)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        expires_at = float(payload.get("expires_at", 0))
    except (OSError, ValueError):
        return None

    if expires_at <= time.time():
        path.unlink(missing_ok=True)
        return None
    return payload.get("data")


def store_ttl_cache(namespace: str, key: str, data: Any, ttl_seconds: int) -> None:
    """Persist JSON-serialisable data with a TTL; replaces any existing entry atomically."""
    path = _entry_path(namespace, key)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"key": key, "data": data, "expires_at": time.time() + ttl_seconds}

    tmp = NamedTemporaryFile("w", delete=False, dir=path.parent, suffix=".tmp", encoding="utf-8")
    try:
        with tmp:
            json.dump(payload, tmp)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    finally:
        # no-op once os.replace has moved the file
        Path(tmp.name).unlink(missing_ok=True)


def clear_ttl_cache(namespace: str) -> int:
    """Drop every entry in a namespace. Returns how many files were removed."""
    ns_dir = _namespace_dir(namespace)
    if not ns_dir.is_dir():
        return 0
    removed = 0
    for p in ns_dir.glob("*.json"):
        p.unlink(missing_ok=True)
        removed += 1
    return removed
