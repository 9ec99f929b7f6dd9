"""FastAPI application entrypoint and HTTP controllers.

Controllers are intentionally thin: they accept requests, delegate to
`StudyGroupService`, and translate failed results into HTTP errors.

Endpoints implemented (relative to `settings.API_PREFIX`):
- POST /study-groups
- GET /study-groups
- POST /study-groups/{id}/join
- DELETE /study-groups/{id}/leave
- DELETE /study-groups
- GET /health
"""

from fastapi import FastAPI, APIRouter, Depends, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from sqlmodel import Session
from typing import Dict, List, Optional
import json
import logging
import time
import uuid
from .database import engine, create_db_and_tables, get_session
from .config import settings
from .results import ErrorKind, Result
from .schemas import StudyGroupIn, StudyGroupOut
from .seed import seed_demo_data
from .services import StudyGroupService

docs_enabled = settings.ENABLE_DOCS
app = FastAPI(
    title="StudyGroups API",
    version="1.0.0",
    description="API for creating and managing study groups",
    docs_url="/docs" if docs_enabled else None,
    redoc_url="/redoc" if docs_enabled else None,
    openapi_url="/openapi.json" if docs_enabled else None,
)
logger = logging.getLogger("studygroups.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

create_db_and_tables()
if settings.SEED_DEMO_DATA:
    with Session(engine) as _session:
        seed_demo_data(_session)

GROUPS_PATH = f"{settings.API_PREFIX}/study-groups"

STATUS_BY_ERROR: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNEXPECTED: 500,
}

# creating a group reports every rejected business rule as a bad request
CREATE_STATUS_OVERRIDES: Dict[ErrorKind, int] = {
    ErrorKind.CONFLICT: 400,
    ErrorKind.NOT_FOUND: 400,
}


def raise_for_result(result: Result, overrides: Optional[Dict[ErrorKind, int]] = None) -> None:
    """Raise an HTTPException carrying the result's message if it failed."""
    if result.success:
        return
    status = {**STATUS_BY_ERROR, **(overrides or {})}[result.error]
    raise HTTPException(status_code=status, detail=result.message)


def _request_event(request: Request, started: float, status_code: Optional[int] = None) -> str:
    event = {
        "request_id": getattr(request.state, "request_id", ""),
        "path": request.url.path,
        "method": request.method,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
        "client": request.client.host if request.client else "unknown",
    }
    if status_code is not None:
        event["status_code"] = status_code
    return json.dumps(event, ensure_ascii=True)


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        # drop the leading "body"/"query"/"path" segment
        field = ".".join(str(p) for p in err.get("loc", ())[1:])
        parts.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request."


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed bodies and query parameters as 400 like other validation failures."""
    return JSONResponse(status_code=400, content={"detail": _describe_validation_errors(exc)})


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("request_failed %s", _request_event(request, started))
        raise
    response.headers["X-Request-ID"] = req_id
    if request.url.path.startswith(GROUPS_PATH):
        logger.info("request_done %s", _request_event(request, started, response.status_code))
    return response


router = APIRouter(prefix=GROUPS_PATH, tags=["study-groups"])


@router.post("", response_model=StudyGroupOut)
def create_study_group(payload: StudyGroupIn, db: Session = Depends(get_session)):
    """Create a new study group.

    Name must be 5-30 characters and subject one of Math, Chemistry or
    Physics. Returns the created group; 400 when a rule is violated.
    """
    result = StudyGroupService(db).create(payload)
    raise_for_result(result, CREATE_STATUS_OVERRIDES)
    return StudyGroupOut.from_model(result.value)


@router.get("", response_model=List[StudyGroupOut])
def get_study_groups(
    subject: Optional[str] = None,
    sort: Optional[str] = "asc",
    db: Session = Depends(get_session),
):
    """List study groups, optionally filtered by subject.

    `sort` orders by creation date: `asc` (default) or `desc`. Returns
    404 when no group matches.
    """
    svc = StudyGroupService(db)
    if subject is None or not subject.strip():
        result = svc.list_groups(sort)
    else:
        result = svc.search_by_subject(subject, sort)
    raise_for_result(result)
    return [StudyGroupOut.from_model(g) for g in result.value]


@router.post("/{group_id}/join")
def join_study_group(group_id: int, user_id: int = Query(..., alias="userId"), db: Session = Depends(get_session)):
    """Add a user to a study group.

    404 if the group or user does not exist, 409 if already a member.
    """
    raise_for_result(StudyGroupService(db).join(group_id, user_id))
    return {"detail": "joined"}


@router.delete("/{group_id}/leave")
def leave_study_group(group_id: int, user_id: int = Query(..., alias="userId"), db: Session = Depends(get_session)):
    """Remove a user from a study group.

    404 if the group or user does not exist or the user is not a member.
    """
    raise_for_result(StudyGroupService(db).leave(group_id, user_id))
    return {"detail": "left"}


@router.delete("", status_code=204)
def delete_all_study_groups(db: Session = Depends(get_session)):
    """Delete every study group. Users are kept."""
    raise_for_result(StudyGroupService(db).delete_all())
    return Response(status_code=204)


app.include_router(router)


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
