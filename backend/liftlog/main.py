# liftlog/main.py
import time
import logging
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from liftlog.db import SessionLocal, init_db
from liftlog.llm.client import ModelClient
from liftlog.llm.errors import ModelConfigurationError
from liftlog.llm.orchestrator import ConversationOrchestrator
from liftlog.routers.chat import router as chat_router
from liftlog.routers.sessions import router as sessions_router
from liftlog.routers.exercises import router as exercises_router
from liftlog.routers.profile import router as profile_router
from liftlog.services.workout import WorkoutService
from liftlog.settings import get_settings
from liftlog.tools.registry import ToolRegistry

log = logging.getLogger("uvicorn")


def _default_model_client() -> ModelClient | None:
    from liftlog.llm.openai_client import OpenAIModelClient
    try:
        return OpenAIModelClient(get_settings())
    except ModelConfigurationError as e:
        log.error("assistant disabled: %s", e)
        return None


def create_app(session_factory=None, model_client: ModelClient | None = None) -> FastAPI:
    settings = get_settings()
    factory = session_factory or SessionLocal

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        with factory() as db:
            init_db(db.get_bind())
            ended = WorkoutService(db).end_stale_sessions()
        if ended:
            log.info("closed %d stale workout session(s) at startup", ended)

        client = model_client or _default_model_client()
        app.state.orchestrator = (
            ConversationOrchestrator(client, ToolRegistry(factory)) if client is not None else None
        )
        yield

    app = FastAPI(
        title="LiftLog API",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "chat", "description": "Conversational workout logging"},
            {"name": "sessions", "description": "Workout sessions"},
            {"name": "exercises", "description": "Exercise catalog, PRs and history"},
            {"name": "profile", "description": "Body weight and user profile"},
        ],
    )
    app.state.session_factory = factory
    app.state.orchestrator = None

    # CORS (relax for local dev; tighten origins in prod via env)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id_and_log(request: Request, call_next):
        req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = req_id
        log.info("rid=%s %s %s -> %s in %.1fms",
                 req_id, request.method, request.url.path, response.status_code, duration_ms)
        return response

    @app.get("/")
    def root():
        return {"ok": True, "name": "LiftLog API"}

    @app.get("/ping")
    def ping():
        return {"pong": True}

    @app.get("/healthz")
    def healthz():
        # Quick DB sanity check
        try:
            with factory() as db:
                db.execute(text("SELECT 1"))
            return {"status": "ok", "assistant": app.state.orchestrator is not None}
        except Exception as e:
            return {"status": "degraded", "error": str(e)}

    @app.get("/version")
    def version():
        return {"version": settings.API_VERSION}

    # Routers
    app.include_router(chat_router)
    app.include_router(sessions_router)
    app.include_router(exercises_router)
    app.include_router(profile_router)
    return app


app = create_app()
