import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from app.api.router import api_router
from app.core.cache import SessionTokenCache
from app.core.catalog import load_catalog
from app.core.config import Settings, settings as default_settings
from app.core.errors import AppError
from app.core.logging import setup_logging
from app.db.store import DocumentStore, create_store
from app.services.admin_service import AdminService
from app.services.auth_service import AuthService
from app.services.interview_service import InterviewService
from app.services.knowledge_service import KnowledgeService
from app.services.llm_service import LLMClient, LLMService
from app.services.persona_service import PersonaService
from app.services.qa_service import QAService
from app.services.snapshot_queue import SnapshotQueue
from app.services.snapshot_service import SnapshotService
from app.services.topic_service import TopicService

logger = logging.getLogger("main")


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_body()))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "details": str(exc)})


def create_app(
    settings: Settings | None = None,
    store: DocumentStore | None = None,
    llm: LLMClient | None = None,
    snapshot_queue: SnapshotQueue | None = None,
) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.log_level)

    store = store or create_store(settings)
    llm = llm or LLMService(settings)
    catalog = load_catalog(settings.role_catalog_path)
    snapshot_service = SnapshotService(store, llm)
    queue = snapshot_queue or SnapshotQueue(
        max_workers=settings.snapshot_workers,
        max_pending=settings.snapshot_max_pending,
    )
    queue.bind(snapshot_service.create_snapshot)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s (store=%s, roles=%d)", settings.app_name, store.backend, len(catalog.roles))
        yield
        logger.info("Shutting down; waiting for %d snapshot job(s)", queue.pending)
        queue.shutdown(wait_for_jobs=True)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.store = store
    app.state.catalog = catalog
    app.state.snapshot_queue = queue
    app.state.snapshot_service = snapshot_service
    app.state.interview_service = InterviewService(
        store,
        llm,
        catalog,
        snapshot_queue=queue,
        snapshot_interval=settings.snapshot_interval,
    )
    app.state.knowledge_service = KnowledgeService(store, llm, catalog)
    app.state.persona_service = PersonaService(store, llm)
    app.state.topic_service = TopicService(store, llm)
    app.state.qa_service = QAService(store, llm, catalog)
    app.state.auth_service = AuthService(
        store,
        SessionTokenCache(settings.session_ttl_seconds),
        bcrypt_rounds=settings.bcrypt_rounds,
    )
    app.state.admin_service = AdminService(store, catalog)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/health/store")
    def health_store():
        try:
            store.list_ids("interviews")
        except (OSError, SQLAlchemyError) as exc:
            logger.error("Document store health check failed: %s", exc)
            return JSONResponse(status_code=503, content={"status": "error", "store": store.backend, "error": str(exc)})
        return {"status": "ok", "store": store.backend}

    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()
