"""
HTTP API for candidates.

Routes:
    GET    /api/candidates          list, filtered (see talentdesk.filters)
    GET    /api/candidates/{id}     fetch one
    POST   /api/candidates          create (JSON or multipart with resume)
    PUT    /api/candidates/{id}     replace scalars + nested collections
    DELETE /api/candidates/{id}     delete with cascade
    GET    /uploads/<file>          stored resumes

Run with `talentdesk serve` or `uvicorn talentdesk.api:create_app --factory`.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from . import __version__
from .database import create_session_factory, init_database
from .env import Settings, get_settings
from .errors import AppError, ValidationError
from .filters import CandidateFilters, paginate
from .logger import get_logger
from .repositories.candidates import CandidateRepository
from .schema import parse_candidate, serialize_candidate
from .uploads import UPLOAD_URL_PREFIX, discard_resume, store_resume

logger = get_logger()

PAGE_SIZE = 10

router = APIRouter()


def get_db(request: Request):
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def get_repository(session=Depends(get_db)) -> CandidateRepository:
    return CandidateRepository(session)


async def _read_json(request: Request):
    try:
        return await request.json()
    except ValueError:
        raise ValidationError("Request body must be valid JSON")


@router.get("/api/candidates")
def list_candidates(
    request: Request,
    page: Optional[int] = None,
    repo: CandidateRepository = Depends(get_repository),
):
    filters = CandidateFilters.from_params(request.query_params)
    candidates = repo.find_many(filters)
    if page is not None:
        candidates = paginate(candidates, page, PAGE_SIZE)
    return [serialize_candidate(c) for c in candidates]


@router.get("/api/candidates/{candidate_id}")
def get_candidate(candidate_id: str, repo: CandidateRepository = Depends(get_repository)):
    return serialize_candidate(repo.get(candidate_id))


@router.post("/api/candidates", status_code=201)
async def create_candidate(request: Request, repo: CandidateRepository = Depends(get_repository)):
    settings: Settings = request.app.state.settings
    resume_url = None

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        raw = form.get("candidate")
        if raw is None or isinstance(raw, UploadFile):
            raise ValidationError("Missing 'candidate' form field")
        payload = parse_candidate(raw)

        resume = form.get("resume")
        if isinstance(resume, UploadFile):
            # One byte past the limit is enough to detect an oversized file
            content = await resume.read(settings.max_resume_bytes + 1)
            resume_url = await run_in_threadpool(
                store_resume,
                resume.filename,
                content,
                settings.upload_dir,
                settings.max_resume_bytes,
            )
    else:
        payload = parse_candidate(await _read_json(request))

    data = payload.scalar_fields()
    if resume_url:
        data["resume_url"] = resume_url

    try:
        candidate = await run_in_threadpool(repo.create, data, payload.education, payload.experience)
    except Exception:
        if resume_url:
            discard_resume(resume_url, settings.upload_dir)
        raise
    return JSONResponse(status_code=201, content=serialize_candidate(candidate))


@router.put("/api/candidates/{candidate_id}")
async def update_candidate(
    candidate_id: str,
    request: Request,
    repo: CandidateRepository = Depends(get_repository),
):
    payload = parse_candidate(await _read_json(request), partial=True)
    candidate = await run_in_threadpool(
        repo.replace,
        candidate_id,
        payload.scalar_fields(),
        payload.education,
        payload.experience,
    )
    return serialize_candidate(candidate)


@router.delete("/api/candidates/{candidate_id}", status_code=204)
def delete_candidate(candidate_id: str, repo: CandidateRepository = Depends(get_repository)):
    repo.delete(candidate_id)
    return Response(status_code=204)


@router.get("/health")
def health():
    return {"status": "ok", "version": __version__}


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        logger.record_error(type(exc).__name__)
        logger.warning(
            exc.message,
            method=request.method,
            path=request.url.path,
            status=exc.status_code,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        logger.record_error("RequestValidationError")
        errors = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"message": "Invalid request", "errors": errors})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.record_error(type(exc).__name__)
        logger.exception(
            "Unhandled error",
            exc,
            method=request.method,
            path=request.url.path,
        )
        return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API application.

    The database and upload directory are prepared here rather than at
    start-up so the app is usable as soon as it is constructed.
    """
    settings = settings or get_settings()

    init_database(settings.db_path)
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    session_factory = create_session_factory(settings.db_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "TalentDesk API starting",
            version=__version__,
            db_path=str(settings.db_path),
            upload_dir=str(settings.upload_dir),
        )
        yield
        session_factory.kw["bind"].dispose()
        logger.log_metrics_summary()

    app = FastAPI(title="TalentDesk", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.session_factory = session_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.record_request(500)
            raise
        logger.record_request(response.status_code)
        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return response

    _register_error_handlers(app)
    app.include_router(router)
    app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=str(settings.upload_dir)), name="uploads")
    return app
