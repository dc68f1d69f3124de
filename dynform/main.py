import logging
import threading
import time
import uuid
from typing import Any, Dict, Optional, Union

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field

from dynform import config
from dynform.errors import SchemaError, UnknownWidgetError
from dynform.render import render_page_html
from dynform.session import FormSession, load_session
from dynform.validators import report_detail

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=config.log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

log = logging.getLogger(__name__)

_SESSIONS_LOCK = threading.Lock()
_SESSIONS: Dict[str, FormSession] = {}

app = FastAPI(title="dynform")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allow_origins() or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = str(uuid.uuid4())
    start = time.time()
    request.state.request_id = rid
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        dur_ms = int((time.time() - start) * 1000)
        log.info(
            "rid=%s method=%s path=%s status=%s dur_ms=%d",
            rid,
            request.method,
            request.url.path,
            getattr(response, "status_code", "?"),
            dur_ms,
        )


class SessionRequest(BaseModel):
    # None loads the layout file configured by DYNFORM_LAYOUT_PATH
    layout: Optional[Union[Dict[str, Any], str]] = Field(
        default=None, description="Layout document, as an object or a JSON string"
    )


class ValidatePageRequest(BaseModel):
    values: Dict[str, Any] = Field(default_factory=dict, description="User edits keyed by widget id")


def _get_session(session_id: str) -> FormSession:
    with _SESSIONS_LOCK:
        session = _SESSIONS.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"unknown session {session_id}")
    return session


def _get_page(session: FormSession, index: int):
    try:
        return session.page(index)
    except IndexError:
        raise HTTPException(status_code=404, detail=f"unknown page {index}")


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/sessions")
def create_session(req: Optional[SessionRequest] = None):
    """
    Build a layout session. Any SchemaError aborts the whole build and
    returns 422 with a single message; no partial layout is kept.
    """
    layout = req.layout if req is not None else None
    try:
        session = FormSession.from_source(layout) if layout is not None else load_session()
    except SchemaError as exc:
        log.warning("sessions.create: layout rejected err=%s", exc.message)
        return JSONResponse(
            status_code=422,
            content={"detail": {"error": f"Failed to load dynamic layout: {exc.message}", "path": exc.path}},
        )
    with _SESSIONS_LOCK:
        _SESSIONS[session.session_id] = session
    # Pre-encoded: the generic encoder walks nested trees recursively
    return JSONResponse(content=session.describe())


@app.delete("/sessions/{session_id}")
def delete_session(session_id: str) -> Dict[str, Any]:
    with _SESSIONS_LOCK:
        removed = _SESSIONS.pop(session_id, None)
    if removed is None:
        raise HTTPException(status_code=404, detail=f"unknown session {session_id}")
    return {"deleted": session_id}


@app.get("/sessions/{session_id}/pages/{index}")
def get_page(session_id: str, index: int):
    session = _get_session(session_id)
    with session.lock:
        doc = _get_page(session, index).to_dict()
    return JSONResponse(content=doc)


@app.get("/sessions/{session_id}/pages/{index}/html", response_class=HTMLResponse)
def get_page_html(session_id: str, index: int) -> str:
    session = _get_session(session_id)
    with session.lock:
        return render_page_html(_get_page(session, index))


@app.post("/sessions/{session_id}/pages/{index}/validate")
def validate_page_endpoint(session_id: str, index: int, req: ValidatePageRequest):
    """
    Apply the submitted edits to the page and run its validate action.
    Returns 200 and {"detail":{"valid":true,...}} when every mandatory field is filled,
            422 and {"detail":{"valid":false,"errors":[...],...}} otherwise.
    A rejected edit (404 unknown widget, 422 bad value) leaves the page unchanged.
    """
    session = _get_session(session_id)
    _get_page(session, index)
    try:
        report = session.submit(index, req.values)
    except UnknownWidgetError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    detail = report_detail(report)
    if not report.all_valid:
        return JSONResponse(status_code=422, content={"detail": detail})
    return {"detail": detail}
