from __future__ import annotations
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel
import logging, os, uuid, typing as t

# ---- Engine imports ----
from k53_core import config
from k53_core.audit_export import answer_rows, to_csv as answers_to_csv, to_json as answers_to_json
from k53_core.composer import build_session, session_types
from k53_core.errors import ConfigurationError, StateError
from k53_core.question_bank import load_bank
from k53_core.report_html import render_result_html
from k53_core.session import PracticeSession
from k53_core.types import Category, Item, Result
from .storage import (
    active_sessions_for_user,
    clear_active_session,
    delete_report,
    find_report_by_session,
    list_reports_for_user,
    load_all_active_sessions,
    load_report,
    save_active_session,
    save_report,
    utcnow_iso,
)

log = logging.getLogger(__name__)

CFG = config.load_config()
BANK = load_bank(CFG["BANK_PATH"])
SESS: dict[str, PracticeSession] = {}
SESSION_INFO: dict[str, dict[str, t.Any]] = {}

for sid, payload in load_all_active_sessions().items():
    try:
        SESS[sid] = PracticeSession.from_dict(payload.get("snapshot") or {})
    except StateError as exc:
        log.warning("dropping unrestorable session %s: %s", sid, exc)
        continue
    SESSION_INFO[sid] = {"user_id": payload.get("userId"), "started_at": payload.get("startedAt")}

app = FastAPI(title="K53 Practice API")

ALLOWED_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:8080").split(",") if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)


@app.exception_handler(StateError)
async def _state_error(_request: Request, exc: StateError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ConfigurationError)
async def _config_error(_request: Request, exc: ConfigurationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# ---- Schemas ----
class StartReq(BaseModel):
    session_type: str = "quick"   # "full" | "quick" | "scenario"
    user_id: str | None = None
    count: int | None = None
    difficulty: str | None = None
    category: Category | None = None
    context: str | None = None
    seed: int | None = None

class AnswerReq(BaseModel):
    option_index: int


# ---- Helpers ----
def _serialize_item(it: Item | None, sess: PracticeSession) -> dict[str, t.Any] | None:
    if it is None: return None
    out: dict[str, t.Any] = {
        "id": it.id,
        "category": it.category.value,
        "kind": it.kind.value,
        "title": it.title,
        "scenario": it.scenario,
        "prompt": it.prompt,
        "options": list(it.options),
        "image": it.image,
        "position": sess.current_index + 1,
        "total": len(sess.items),
    }
    if config.SHOW_ANSWER_KEY:
        out["correct_index"] = it.correct_index
    return out


def _session_view(sid: str, sess: PracticeSession) -> dict[str, t.Any]:
    return {
        "session_id": sid,
        "session_type": sess.session_type,
        "state": sess.state.value,
        "current_index": sess.current_index,
        "total": len(sess.items),
        "answers": list(sess.answers),
        "answered_current": sess.has_answered_current,
        "progress": sess.progress,
        "is_complete": sess.is_complete,
        "item": _serialize_item(sess.current_item, sess),
    }


def _get_session(sid: str) -> PracticeSession:
    sess = SESS.get(sid)
    if not sess: raise HTTPException(404, "session not found")
    return sess


def _checkpoint(sid: str, sess: PracticeSession) -> None:
    info = SESSION_INFO.get(sid, {})
    if not info.get("user_id"):
        return
    save_active_session(
        sid,
        {
            "userId": info["user_id"],
            "startedAt": info.get("started_at"),
            "lastUpdated": utcnow_iso(),
            "snapshot": sess.to_dict(),
        },
    )


def _finish(sid: str, sess: PracticeSession, result: Result) -> dict[str, t.Any]:
    info = SESSION_INFO.get(sid, {})
    rid = str(uuid.uuid4())
    created = utcnow_iso()
    report: dict[str, t.Any] = dict(result.to_dict())
    report.update({
        "id": rid,
        "reportId": rid,
        "created_at": created,
        "answers": answer_rows(sess.items, sess.answers),
        "meta": {
            "reportId": rid,
            "sessionId": sid,
            "userId": info.get("user_id"),
            "session_type": sess.session_type,
            "createdAt": created,
            "duration_seconds": sess.elapsed_seconds,
        },
    })
    metadata = {
        "sessionId": sid,
        "userId": info.get("user_id"),
        "createdAt": created,
        "sessionType": sess.session_type,
        "passed": result.passed,
        "correct": result.correct,
        "total": result.total,
    }
    save_report(rid, report, metadata)
    clear_active_session(sid)
    SESS.pop(sid, None)
    SESSION_INFO.pop(sid, None)
    return report


def _load_report_or_404(report_id: str) -> dict[str, t.Any]:
    report = load_report(report_id)
    if not report:
        raise HTTPException(404, "report not found")
    return report


# ---- Health ----
@app.get("/")
def root():
    return {"status": "ok", "service": "k53-practice-api"}


@app.get("/health")
def health():
    return {"bank_items": len(BANK), "bank_counts": BANK.counts(), "quota_policy": CFG["QUOTA_POLICY"]}


@app.get("/session-types")
def list_session_types():
    out = []
    for st in session_types().values():
        out.append({
            "name": st.name,
            "label": st.label,
            "size": st.size,
            "quotas": {c.value: n for c, n in st.quotas.items()},
            "thresholds": {c.value: n for c, n in st.thresholds.items()},
        })
    out.append({"name": "scenario", "label": "Scenario test", "size": config.SCENARIO_COUNT})
    return {"session_types": out}


# ---- Session lifecycle ----
@app.post("/session/start")
def start(req: StartReq):
    sess = build_session(
        req.session_type,
        BANK,
        rng=config.make_rng(req.seed),
        policy=CFG["QUOTA_POLICY"],
        count=req.count,
        difficulty=req.difficulty,
        category=req.category,
        context=req.context,
    )
    sid = str(uuid.uuid4())
    SESS[sid] = sess
    SESSION_INFO[sid] = {"user_id": req.user_id, "started_at": utcnow_iso()}
    _checkpoint(sid, sess)
    log.info("started %s session %s (%d items)", req.session_type, sid, len(sess.items))
    return {
        "session_id": sid,
        "session_type": sess.session_type,
        "total": len(sess.items),
        "thresholds": {c.value: n for c, n in sess.thresholds.items()},
        "item": _serialize_item(sess.current_item, sess),
    }


@app.get("/session/{sid}")
def session_state(sid: str):
    sess = SESS.get(sid)
    if sess is None:
        stored = find_report_by_session(sid)
        if stored:
            return {"session_id": sid, "state": "completed", "is_complete": True, "report": stored}
        raise HTTPException(404, "session not found")
    return _session_view(sid, sess)


@app.post("/session/{sid}/answer")
def answer(sid: str, req: AnswerReq):
    sess = _get_session(sid)
    feedback = sess.submit_answer(req.option_index)
    _checkpoint(sid, sess)
    return {"feedback": feedback.to_dict()}


@app.post("/session/{sid}/advance")
def advance(sid: str):
    sess = _get_session(sid)
    result = sess.advance()
    if result is not None:
        report = _finish(sid, sess, result)
        return {"done": True, "item": None, "report": report}
    _checkpoint(sid, sess)
    return {"done": False, "item": _serialize_item(sess.current_item, sess), "progress": sess.progress}


# ---- Reports ----
@app.get("/reports/{report_id}")
def get_report(report_id: str):
    return _load_report_or_404(report_id)


@app.get("/reports/{report_id}/html", response_class=HTMLResponse)
def get_report_html(report_id: str):
    return render_result_html(_load_report_or_404(report_id))


@app.get("/reports/{report_id}/answers.json")
def get_answers_json(report_id: str):
    report = _load_report_or_404(report_id)
    return {"report_id": report_id, **answers_to_json(report.get("answers") or [])}


@app.get("/reports/{report_id}/answers.csv")
def get_answers_csv(report_id: str):
    report = _load_report_or_404(report_id)
    body = answers_to_csv(report.get("answers") or [])
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=\"{report_id}_answers.csv\""},
    )


@app.delete("/reports/{report_id}")
def delete_report_endpoint(report_id: str):
    if not delete_report(report_id):
        raise HTTPException(404, "report not found")
    return {"ok": True}


@app.get("/users/{user_id}/reports")
def list_reports(user_id: str):
    return {"reports": list_reports_for_user(user_id)}


@app.get("/users/{user_id}/sessions/active")
def list_active_sessions(user_id: str):
    return {"sessions": active_sessions_for_user(user_id)}
