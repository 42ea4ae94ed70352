import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse

from controllers.session_controller import SESSION_COOKIE, LoginRequired, discard_session
from dal.record_store import RecordStoreFactory
from routes.analytics_route import router as analytics_router
from routes.history_route import router as history_router
from routes.profile_route import router as profile_router
from routes.session_route import router as session_router
from services.geocoding import GeocodingResolver
from services.session_store import DashboardSessionBuilder, SessionStore
from services.supabase.auth_client import SupabaseAuthFactory
from services.supabase.query import SessionExpired
from utils.config import AppConfig
from utils.database_init import AsyncDatabaseInitializer

load_dotenv()  # Load environment variables from .env file if present

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the factory that opens one Supabase client per signed-in user
      - the record store (Supabase or the local SQLite file)
      - the optional reverse geocoder
      - the in-memory dashboard session store
    and attach them to `app.state`.
    """
    config = AppConfig.from_env()
    app.state.config = config

    db_initializer = None
    if config.record_store_backend == "sqlite":
        db_initializer = AsyncDatabaseInitializer(config.database_dir)
        await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer

    geocoder = None
    if config.geocoder_api_key:
        geocoder = GeocodingResolver(config.geocoder_api_key, timeout=config.http_timeout_seconds)
    else:
        LOGGER.info("GEOCODER_API_KEY is not set; scan locations are shown as stored.")

    app.state.auth_clients = SupabaseAuthFactory(
        config.supabase_url,
        config.supabase_anon_key,
        timeout=config.http_timeout_seconds,
    )
    app.state.session_store = SessionStore(
        DashboardSessionBuilder(RecordStoreFactory(config, db_initializer), geocoder),
        idle_seconds=config.session_idle_seconds,
    )
    LOGGER.info("Dashboard started with the %s record store", config.record_store_backend)

    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(lifespan=lifespan, title="Plant Health Admin Dashboard")

    @app.exception_handler(LoginRequired)
    async def redirect_to_login(request: Request, exc: LoginRequired):
        response = RedirectResponse(url="/login", status_code=303)
        response.delete_cookie(SESSION_COOKIE)
        return response

    @app.exception_handler(SessionExpired)
    async def sign_out_expired(request: Request, exc: SessionExpired):
        discard_session(request)
        response = RedirectResponse(url="/login", status_code=303)
        response.delete_cookie(SESSION_COOKIE)
        return response

    @app.get("/", include_in_schema=False)
    async def index():
        return RedirectResponse(url="/dashboard", status_code=303)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check reporting which shared clients are present.
        """
        config = getattr(request.app.state, "config", None)
        return {
            "ok": True,
            "record_store": config.record_store_backend if config else None,
            "sessions": len(getattr(request.app.state, "session_store", None) or ()),
        }

    # Register application routers
    app.include_router(session_router)
    app.include_router(analytics_router)
    app.include_router(history_router)
    app.include_router(profile_router)

    return app


app = create_app()
