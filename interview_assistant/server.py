"""
FastAPI server for the Interview Assistant.

Serves the interviewer dashboard (candidate search, details and PDF reports)
and the interviewee sessions (identity collection, timed questions and
timeout confirmation).
"""
import contextlib
import logging
import uuid
from datetime import datetime
from enum import Enum
from typing import Callable, List, Literal, Optional

from fastapi import FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from interview_assistant.core.session import InterviewSession, SessionSnapshot
from interview_assistant.core.store import InterviewStore
from interview_assistant.core.timer import HostLifecycleSignal
from interview_assistant.models.interview import Candidate, Interview
from interview_assistant.tools.report_tools import generate_candidate_report
from interview_assistant.utils.config import get_search_config
from interview_assistant.utils.constants import ERROR_CANDIDATE_NOT_FOUND, ERROR_SESSION_NOT_FOUND
from interview_assistant.utils.errors import InvalidTransitionError
from interview_assistant.utils.logging_utils import setup_logging
from interview_assistant.utils.search import CandidateSearchIndex, sort_candidates
from interview_assistant.utils.storage import create_store

logger = logging.getLogger(__name__)

SessionFactory = Callable[[InterviewStore, HostLifecycleSignal, str], InterviewSession]


def default_session_factory(
    store: InterviewStore,
    lifecycle: HostLifecycleSignal,
    client_id: str
) -> InterviewSession:
    return InterviewSession.with_llm_collaborators(store, lifecycle=lifecycle, client_id=client_id)


class ManagedSession:
    """A live interview session and the lifecycle signal of the client driving it."""

    def __init__(self, session: InterviewSession, lifecycle: HostLifecycleSignal):
        self.session = session
        self.lifecycle = lifecycle


class RecoveryAction(str, Enum):
    RESUME = "resume"
    DISCARD = "discard"


# Request / response models

class CreateSessionRequest(BaseModel):
    client_id: Optional[str] = Field(
        None, min_length=1, description="Identifier returned by an earlier session; a new one is issued when omitted"
    )


class CandidateFieldsRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    skills: Optional[List[str]] = None
    position: Optional[str] = None
    experience: Optional[float] = Field(None, ge=0)
    education: Optional[str] = None


class AnswerRequest(BaseModel):
    text: Optional[str] = Field(None, description="Answer text; the saved draft is used when omitted")


class VisibilityRequest(BaseModel):
    foreground: bool


class SessionResponse(BaseModel):
    session_id: str
    snapshot: SessionSnapshot


class CandidateListResponse(BaseModel):
    total: int
    filtered: int
    has_active_filter: bool
    candidates: List[Candidate]


class CandidateDetailResponse(BaseModel):
    candidate: Candidate
    interview: Optional[Interview] = None


class ErrorResponse(BaseModel):
    detail: str


def create_app(
    store: Optional[InterviewStore] = None,
    session_factory: Optional[SessionFactory] = None
) -> FastAPI:
    """
    Build the API application.

    Args:
        store: State container shared by every session (built from the storage
            configuration on startup when omitted)
        session_factory: Builds a session for a new client
    """

    @contextlib.asynccontextmanager
    async def lifespan(app_instance: FastAPI):
        logger.info("Lifespan: startup")
        if getattr(app_instance.state, "store", None) is None:
            app_instance.state.store = InterviewStore(create_store())
        yield
        logger.info("Lifespan: shutdown, closing sessions")
        for managed in app_instance.state.sessions.values():
            managed.session.close()
        app_instance.state.sessions.clear()

    app = FastAPI(
        title="Interview Assistant API",
        description="Timed technical interviews with automatic evaluation, plus a candidate dashboard.",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    search_config = get_search_config()
    app.state.store = store
    app.state.session_factory = session_factory or default_session_factory
    app.state.sessions = {}
    app.state.search_index = CandidateSearchIndex(
        threshold=search_config.get("threshold", 0.3),
        cache_size=search_config.get("cache_size", 50),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
        logger.warning(f"Rejected command on {request.url.path}: {exc}")
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "An internal server error occurred. Please try again later."}
        )

    def get_store(request: Request) -> InterviewStore:
        active_store = request.app.state.store
        if active_store is None:
            raise HTTPException(status_code=503, detail="Storage not available.")
        return active_store

    def get_managed(request: Request, session_id: str) -> ManagedSession:
        managed = request.app.state.sessions.get(session_id)
        if managed is None:
            raise HTTPException(status_code=404, detail=ERROR_SESSION_NOT_FOUND)
        return managed

    def respond(session_id: str, snapshot: SessionSnapshot) -> SessionResponse:
        return SessionResponse(session_id=session_id, snapshot=snapshot)

    @app.get("/api/health")
    async def health_check(request: Request):
        """Service status and the number of live sessions."""
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "active_sessions": len(request.app.state.sessions),
            "version": app.version,
        }

    # ------------------------------------------------------------------
    # Interviewer dashboard
    # ------------------------------------------------------------------

    @app.get("/api/candidates", response_model=CandidateListResponse)
    async def list_candidates(
        request: Request,
        q: str = Query("", description="Fuzzy search over name, email, position and skills"),
        sort_by: Literal["name", "score", "date"] = "date",
        sort_order: Literal["asc", "desc"] = "desc"
    ):
        candidates = get_store(request).candidates
        filtered = request.app.state.search_index.fuzzy_search(candidates, q)
        return CandidateListResponse(
            total=len(candidates),
            filtered=len(filtered),
            has_active_filter=bool(q.strip()),
            candidates=sort_candidates(filtered, sort_by, sort_order),
        )

    @app.get(
        "/api/candidates/{candidate_id}",
        response_model=CandidateDetailResponse,
        responses={404: {"model": ErrorResponse}}
    )
    async def get_candidate(request: Request, candidate_id: str):
        active_store = get_store(request)
        candidate = active_store.get_candidate(candidate_id)
        if candidate is None:
            raise HTTPException(status_code=404, detail=ERROR_CANDIDATE_NOT_FOUND)
        return CandidateDetailResponse(
            candidate=candidate,
            interview=active_store.interview_for_candidate(candidate_id),
        )

    @app.get("/api/candidates/{candidate_id}/report", responses={404: {"model": ErrorResponse}})
    async def get_candidate_report(request: Request, candidate_id: str):
        """PDF report of the candidate's interview."""
        active_store = get_store(request)
        candidate = active_store.get_candidate(candidate_id)
        if candidate is None:
            raise HTTPException(status_code=404, detail=ERROR_CANDIDATE_NOT_FOUND)
        pdf = generate_candidate_report(candidate, active_store.interview_for_candidate(candidate_id))
        return Response(
            content=pdf,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="interview_report_{candidate_id}.pdf"'},
        )

    # ------------------------------------------------------------------
    # Interviewee sessions
    # ------------------------------------------------------------------

    @app.post("/api/sessions", response_model=SessionResponse)
    async def create_session(request: Request, body: Optional[CreateSessionRequest] = None):
        """
        Open a session for a client.

        It starts in welcome-back when this client left an unfinished interview.
        """
        client_id = (body.client_id if body else None) or str(uuid.uuid4())
        lifecycle = HostLifecycleSignal()
        session = request.app.state.session_factory(get_store(request), lifecycle, client_id)
        session_id = str(uuid.uuid4())
        request.app.state.sessions[session_id] = ManagedSession(session, lifecycle)
        logger.info(f"Created session {session_id} for client {client_id}")
        return respond(session_id, session.load())

    @app.get("/api/sessions/{session_id}", response_model=SessionResponse)
    async def get_session(request: Request, session_id: str):
        return respond(session_id, get_managed(request, session_id).session.snapshot)

    @app.delete("/api/sessions/{session_id}")
    async def close_session(request: Request, session_id: str):
        managed = get_managed(request, session_id)
        managed.session.close()
        del request.app.state.sessions[session_id]
        return {"session_id": session_id, "closed": True}

    @app.post("/api/sessions/{session_id}/recovery/{action}", response_model=SessionResponse)
    async def handle_recovery(request: Request, session_id: str, action: RecoveryAction):
        session = get_managed(request, session_id).session
        if action == RecoveryAction.RESUME:
            return respond(session_id, session.resume_from_snapshot())
        return respond(session_id, session.discard_snapshot())

    @app.post("/api/sessions/{session_id}/resume", response_model=SessionResponse)
    async def upload_resume(request: Request, session_id: str, file: UploadFile = File(...)):
        session = get_managed(request, session_id).session
        content = await file.read()
        logger.info(f"Session {session_id}: received resume {file.filename} ({len(content)} bytes)")
        return respond(session_id, await session.submit_resume(content, file.filename))

    @app.post("/api/sessions/{session_id}/fields", response_model=SessionResponse)
    async def submit_fields(request: Request, session_id: str, fields: CandidateFieldsRequest):
        session = get_managed(request, session_id).session
        try:
            snapshot = session.submit_manual_entry(**fields.model_dump(exclude_none=True))
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return respond(session_id, snapshot)

    @app.post("/api/sessions/{session_id}/start", response_model=SessionResponse)
    async def start_interview(request: Request, session_id: str):
        session = get_managed(request, session_id).session
        return respond(session_id, await session.start_interview())

    @app.post("/api/sessions/{session_id}/draft", response_model=SessionResponse)
    async def save_draft(request: Request, session_id: str, body: AnswerRequest):
        session = get_managed(request, session_id).session
        return respond(session_id, session.update_draft(body.text or ""))

    @app.post("/api/sessions/{session_id}/answer", response_model=SessionResponse)
    async def submit_answer(request: Request, session_id: str, body: AnswerRequest):
        session = get_managed(request, session_id).session
        return respond(session_id, await session.submit_answer(body.text))

    @app.post("/api/sessions/{session_id}/timeout/confirm", response_model=SessionResponse)
    async def confirm_timeout(request: Request, session_id: str, body: Optional[AnswerRequest] = None):
        session = get_managed(request, session_id).session
        if body is not None and body.text is not None:
            session.update_draft(body.text)
        return respond(session_id, await session.confirm_auto_submit())

    @app.post("/api/sessions/{session_id}/timeout/review", response_model=SessionResponse)
    async def review_timeout(request: Request, session_id: str):
        return respond(session_id, get_managed(request, session_id).session.request_review())

    @app.post("/api/sessions/{session_id}/visibility", response_model=SessionResponse)
    async def set_visibility(request: Request, session_id: str, body: VisibilityRequest):
        """Report that the client went to the background or came back."""
        managed = get_managed(request, session_id)
        managed.lifecycle.set_foreground(body.foreground)
        return respond(session_id, managed.session.snapshot)

    @app.delete("/api/sessions/{session_id}/notices/{index}", response_model=SessionResponse)
    async def dismiss_notice(request: Request, session_id: str, index: int):
        return respond(session_id, get_managed(request, session_id).session.dismiss_notice(index))

    return app


app = create_app()


def start_server(host: str = "0.0.0.0", port: int = 8000):
    """Run the API with uvicorn."""
    import uvicorn

    setup_logging()
    logger.info(f"Starting Interview Assistant API on {host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    start_server()
