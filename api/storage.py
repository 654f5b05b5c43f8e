"""JSON-file persistence for finished reports and in-progress session snapshots.

Everything lives under ``DATA_DIR`` so the API can restart without losing
shareable report links or a candidate's half-finished paper.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


log = logging.getLogger(__name__)

DATA_ROOT = Path(os.getenv("DATA_DIR", "data")).resolve()
REPORTS_DIR = DATA_ROOT / "reports"
REPORT_INDEX_PATH = DATA_ROOT / "reports_index.json"
ACTIVE_SESSIONS_PATH = DATA_ROOT / "sessions_active.json"

_LOCK = threading.Lock()


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        log.warning("unreadable JSON at %s; using default", path)
        return default


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp.replace(path)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---- reports ----
def save_report(report_id: str, report: Dict[str, Any], metadata: Dict[str, Any]) -> None:
    with _LOCK:
        index: Dict[str, Dict[str, Any]] = _read_json(REPORT_INDEX_PATH, {})
        index[report_id] = metadata
        _write_json(REPORT_INDEX_PATH, index)
    _write_json(REPORTS_DIR / f"{report_id}.json", report)


def load_report(report_id: str) -> Optional[Dict[str, Any]]:
    return _read_json(REPORTS_DIR / f"{report_id}.json", None)


def delete_report(report_id: str) -> bool:
    with _LOCK:
        index: Dict[str, Dict[str, Any]] = _read_json(REPORT_INDEX_PATH, {})
        removed = index.pop(report_id, None) is not None
        if removed:
            _write_json(REPORT_INDEX_PATH, index)
        path = REPORTS_DIR / f"{report_id}.json"
        existed = path.exists()
        path.unlink(missing_ok=True)
    return removed or existed


def list_reports_for_user(user_id: str) -> List[Dict[str, Any]]:
    index: Dict[str, Dict[str, Any]] = _read_json(REPORT_INDEX_PATH, {})
    out = [{"id": rid, **meta} for rid, meta in index.items() if meta.get("userId") == user_id]
    out.sort(key=lambda r: r.get("createdAt", ""), reverse=True)
    return out


def find_report_by_session(session_id: str) -> Optional[Dict[str, Any]]:
    index: Dict[str, Dict[str, Any]] = _read_json(REPORT_INDEX_PATH, {})
    for rid, meta in index.items():
        if meta.get("sessionId") == session_id:
            return load_report(rid)
    return None


# ---- active sessions ----
def _load_sessions() -> Dict[str, Dict[str, Any]]:
    return _read_json(ACTIVE_SESSIONS_PATH, {})


def save_active_session(session_id: str, payload: Dict[str, Any]) -> None:
    """Store (or replace) the resumable snapshot of an in-progress session."""
    with _LOCK:
        sessions = _load_sessions()
        sessions[session_id] = payload
        _write_json(ACTIVE_SESSIONS_PATH, sessions)


def clear_active_session(session_id: str) -> None:
    with _LOCK:
        sessions = _load_sessions()
        if sessions.pop(session_id, None) is not None:
            _write_json(ACTIVE_SESSIONS_PATH, sessions)


def active_sessions_for_user(user_id: str) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for sid, payload in _load_sessions().items():
        if payload.get("userId") != user_id:
            continue
        snap = payload.get("snapshot") or {}
        out.append({
            "sessionId": sid,
            "userId": user_id,
            "sessionType": snap.get("session_type"),
            "startedAt": payload.get("startedAt"),
            "lastUpdated": payload.get("lastUpdated"),
            "currentIndex": snap.get("current_index"),
            "total": len(snap.get("items") or []),
        })
    out.sort(key=lambda r: r.get("startedAt") or "", reverse=True)
    return out


def load_all_active_sessions() -> Dict[str, Dict[str, Any]]:
    return _load_sessions()
