from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.middleware.base import BaseHTTPMiddleware
from dotenv import load_dotenv

# Load .env before settings are read
load_dotenv()

import uvicorn
from app.agents.model import ChatModel
from app.agents.orchestrator import ChatTurnOrchestrator, ModelClient
from app.agents.tools import ToolDispatcher
from app.auth.api.routes import auth_router
from app.auth.service.auth_service import AuthService
from app.chat.api.route import chat_router
from app.chat.repository.chat_repository import ChatRepository
from app.chat.service.context_service import ContextAssembler
from app.chat.service.service import ConversationStore, IChatRepository
from app.core.config import settings
from app.core.errors import WingmanError
from app.core.logger import get_logger
from app.dates.api.route import dates_router
from app.dates.repository.date_repository import DateRepository
from app.dates.service.date_service import DateService, IDateRepository
from app.guest.api.route import guest_router
from app.guest.service.guest_service import GuestSessionManager
from app.maps.api.route import maps_router
from app.user.api.routes import user_router
from app.user.repository.user_repository import UserRepository
from app.user.service.user_service import IUserRepository, UserService
from pkg.auth_token_client.client import TokenClient
from pkg.db_util.postgres_conn import PostgresConnection
from pkg.db_util.types import PostgresConfig
from pkg.maps_client.client import GoogleMapsClient
import asyncio
import sys

logger = get_logger("wingman")


async def check_database_connectivity(host: str, port: int, timeout: float = 10.0) -> dict:
    """Check if database host is reachable - non-blocking diagnostic only."""
    result = {"network_reachable": False, "error": None}
    try:
        logger.info(f"Testing network connectivity to {host}:{port}...")
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
        writer.close()
        await writer.wait_closed()
        result["network_reachable"] = True
        logger.info(f"Network connection successful to {host}:{port}")
    except Exception as e:
        result["error"] = f"Connection test failed: {e}"
        logger.warning(f"Connection pre-check failed to {host}:{port}: {e}")
    return result


def wire_services(
    app: FastAPI,
    *,
    user_repository: IUserRepository,
    chat_repository: IChatRepository,
    date_repository: IDateRepository,
    model: ModelClient,
    maps_client: GoogleMapsClient,
) -> None:
    """Build services on top of the given repositories and expose them on app.state."""
    token_client = TokenClient(settings.JWT_SUPER_SECRET, settings.JWT_REFRESH_SECRET)
    user_service = UserService(user_repository, logger)
    date_service = DateService(date_repository)
    dispatcher = ToolDispatcher(maps_client)

    app.state.logger = logger
    app.state.token_client = token_client
    app.state.user_service = user_service
    app.state.auth_service = AuthService(user_service, token_client, logger)
    app.state.date_service = date_service
    app.state.conversation_store = ConversationStore(chat_repository)
    app.state.context_assembler = ContextAssembler(user_service, date_service)
    app.state.guest_manager = GuestSessionManager(
        secret_key=settings.GUEST_TOKEN_SECRET,
        max_messages=settings.GUEST_MAX_MESSAGES,
        session_duration_seconds=settings.GUEST_SESSION_DURATION_SECONDS,
    )
    app.state.maps_client = maps_client
    app.state.dispatcher = dispatcher
    app.state.orchestrator = ChatTurnOrchestrator(
        model, dispatcher, max_round_trips=settings.MAX_TOOL_ROUND_TRIPS
    )
    app.state.startup_complete = True
    app.state.startup_error = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager - ensures startup completes before accepting requests"""
    logger.info(f"{settings.APP_NAME} starting up...")
    logger.info(f"Python: {sys.version}")

    required = {
        "POSTGRES_HOST": settings.POSTGRES_HOST.strip(),
        "POSTGRES_USER": settings.POSTGRES_USER.strip(),
        "POSTGRES_PASSWORD": settings.POSTGRES_PASSWORD.strip(),
        "POSTGRES_DB": settings.POSTGRES_DB.strip(),
    }
    missing_vars = [key for key, value in required.items() if not value]
    if missing_vars:
        error_msg = f"Missing required environment variables: {', '.join(missing_vars)}"
        logger.error(error_msg)
        logger.error("Application will start in degraded mode")

        # Set minimal state so health endpoint works
        app.state.logger = logger
        app.state.postgres_conn = None
        app.state.startup_complete = False
        app.state.startup_error = error_msg

        yield
        return

    if not settings.GOOGLE_MAPS_API_KEY:
        logger.warning("GOOGLE_MAPS_API_KEY not set; venue and distance lookups will fail")

    postgres_conn = None
    try:
        connectivity = await check_database_connectivity(required["POSTGRES_HOST"], settings.POSTGRES_PORT)
        if not connectivity["network_reachable"]:
            logger.warning("Connectivity pre-check failed; the driver will attempt connection anyway")

        postgres_config = PostgresConfig(
            host=required["POSTGRES_HOST"],
            port=settings.POSTGRES_PORT,
            username=required["POSTGRES_USER"],
            password=required["POSTGRES_PASSWORD"],
            database=required["POSTGRES_DB"],
            pool_timeout=30,
        )
        postgres_conn = PostgresConnection(postgres_config, logger)

        logger.info("Initializing database engine with retry logic...")
        try:
            await asyncio.wait_for(
                postgres_conn.get_engine(max_retries=5, initial_delay=2.0),
                timeout=60.0
            )
            logger.info("Postgres engine initialized and cached during startup.")
        except asyncio.TimeoutError:
            logger.error("Database connection timed out after 60 seconds")
            raise ConnectionError("Database connection timeout - check network/credentials")

        logger.info("Tables needed: users, user_profiles, dates, conversations, messages "
                    "(create them with scripts/create_tables.py)")

        app.state.postgres_conn = postgres_conn
        wire_services(
            app,
            user_repository=UserRepository(postgres_conn.get_session, logger),
            chat_repository=ChatRepository(postgres_conn),
            date_repository=DateRepository(postgres_conn),
            model=ChatModel(settings.LLM_MODEL, settings.LLM_MAX_TOKENS),
            maps_client=GoogleMapsClient(
                settings.GOOGLE_MAPS_API_KEY,
                timeout=settings.MAPS_TIMEOUT_SECONDS,
                search_radius_meters=settings.MAPS_SEARCH_RADIUS_METERS,
            ),
        )
        logger.info(f"Startup complete - using model {settings.LLM_MODEL}")

    except Exception as e:
        logger.error(f"Startup failed: {e}", exc_info=True)
        logger.error("Application will start in degraded mode - check logs above")

        app.state.logger = logger
        app.state.postgres_conn = None
        app.state.startup_complete = False
        app.state.startup_error = str(e)

    yield

    logger.info(f"{settings.APP_NAME} shutting down...")
    if postgres_conn is not None:
        await postgres_conn.close_engine()


# Startup Check Middleware - ensures no requests processed before startup completes
class StartupCheckMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.url.path in ["/health", "/", "/docs", "/openapi.json"]:
            return await call_next(request)

        if not getattr(request.app.state, "startup_complete", False):
            return JSONResponse(
                status_code=503,
                content={
                    "status": False,
                    "message": "Service is starting up. Please retry in a few seconds."
                }
            )

        startup_error = getattr(request.app.state, "startup_error", None)
        if startup_error:
            return JSONResponse(
                status_code=503,
                content={
                    "status": False,
                    "message": f"Service initialization failed: {startup_error}"
                }
            )

        return await call_next(request)


async def http_exception_handler(request: Request, exc: HTTPException):
    """Convert HTTPException to standardized error format"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": False,
            "message": exc.detail
        },
        headers=exc.headers
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and bad parameters get the standard error body with 400"""
    errors = exc.errors()
    first = errors[0] if errors else {}
    if first.get("type") == "json_invalid":
        message = "Request body is not valid JSON"
    else:
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        detail = first.get("msg", "Invalid request")
        message = f"{field}: {detail}" if field else detail
    logger.info(f"{request.method} {request.url.path} rejected (400): {message}")
    return JSONResponse(status_code=400, content={"status": False, "message": message})


async def wingman_error_handler(request: Request, exc: WingmanError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"status": False, "message": "Internal server error"})


def create_app(with_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="Date planning assistant with guest sessions, venue search and date history",
        version="1.0.0",
        lifespan=lifespan if with_lifespan else None,
    )

    # Add middleware in correct order
    app.add_middleware(StartupCheckMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # adjust in prod
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(WingmanError, wingman_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Routers
    app.include_router(chat_router)
    app.include_router(guest_router)
    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(dates_router)
    app.include_router(maps_router)

    @app.get("/health")
    async def health():
        """Health check that shows service status"""
        startup_complete = getattr(app.state, "startup_complete", False)
        startup_error = getattr(app.state, "startup_error", None)

        # Return 200 for platform health checks even during startup
        if not startup_complete:
            return JSONResponse(
                status_code=200,
                content={
                    "status": "starting" if startup_error is None else "degraded",
                    "service": "wingman",
                    "message": startup_error or "Application is still starting up...",
                    "startup_complete": False
                }
            )

        checks = {
            "database": "connected" if getattr(app.state, "postgres_conn", None) else "not_initialized",
            "maps": "configured" if app.state.maps_client.is_enabled() else "missing_api_key",
            "orchestrator": "ready" if getattr(app.state, "orchestrator", None) else "not_ready",
        }
        all_healthy = checks["database"] == "connected" and checks["orchestrator"] == "ready"
        return {
            "status": "healthy" if all_healthy else "degraded",
            "service": "wingman",
            "checks": checks,
            "startup_complete": True,
        }

    @app.get("/")
    async def root():
        return {"service": settings.APP_NAME, "status": "running", "docs": "/docs"}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT)
