#run it with uvicorn contractor_api.main:app --reload
import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from contractor_api import __version__
from contractor_api.api.api_router import api_router
from contractor_api.core.config import Settings, get_settings
from contractor_api.core.logging_config import setup_logging
from contractor_api.core.scheduler import MONGO_PROBE_JOB_ID, add_job, create_scheduler, init_scheduler, shutdown
from contractor_api.db.init_db import initialize_database, verify_database_setup
from contractor_api.db.mongo import MongoConnection
from contractor_api.services.contact_store import ContactStore
from contractor_api.services.notifications import EmailNotifier

logger = logging.getLogger(__name__)


async def prepare_database(connection: MongoConnection):
    """Ensure collections and indexes once the primary store is reachable"""
    try:
        db = connection.get_database()
        if await initialize_database(db):
            logger.info("✅ Database initialization completed successfully")
        else:
            logger.warning("⚠️ Database initialization completed with warnings")

        verification = await verify_database_setup(db)
        if verification.get('overall_status') == 'PASS':
            logger.info("✅ Database verification passed")
        else:
            logger.warning(f"⚠️ Database verification status: {verification.get('overall_status')}")
    except Exception as e:
        logger.error(f"❌ Database initialization failed: {str(e)}")


async def connect_primary_store(connection: MongoConnection):
    if await connection.connect():
        await prepare_database(connection)


async def probe_primary_store(connection: MongoConnection):
    if await connection.probe():
        logger.info("🔄 MongoDB reachable again, contact submissions go to MongoDB")
        await prepare_database(connection)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect to MongoDB in the background and start the probe job"""
    settings = app.state.settings
    connection = app.state.mongo

    # Requests are served while the first connection attempt resolves
    connect_task = asyncio.create_task(connect_primary_store(connection))

    scheduler = create_scheduler()
    init_scheduler(scheduler)
    add_job(
        scheduler,
        job_id=MONGO_PROBE_JOB_ID,
        func=probe_primary_store,
        trigger="interval",
        seconds=settings.mongo_probe_interval_seconds,
        args=[connection],
    )

    try:
        yield
    finally:
        shutdown(scheduler)
        if not connect_task.done():
            connect_task.cancel()
            with suppress(asyncio.CancelledError):
                await connect_task
        try:
            connection.close()
        except Exception as e:
            logger.error(f"Error closing MongoDB connections: {str(e)}")


def create_app(
    settings: Settings = None,
    connection: MongoConnection = None,
    store: ContactStore = None,
    notifier: EmailNotifier = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    connection = connection or MongoConnection.from_settings(settings)
    store = store or ContactStore(connection, operation_timeout=settings.mongo_operation_timeout)
    notifier = notifier or EmailNotifier.from_settings(settings)

    app = FastAPI(title="Apna Contractor API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.mongo = connection
    app.state.contact_store = store
    app.state.notifier = notifier

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/")
    def root():
        return {
            "message": "Apna Contractor API Server",
            "status": "running",
            "version": __version__,
            "mongodb": connection.state.value,
        }

    @app.get("/health")
    def health_check():
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "mongodb": connection.state.value,
        }

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = "Route not found"
        else:
            message = str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(part) for part in error["loc"][1:]) or "body", "message": error["msg"]}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Invalid request", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Something went wrong!"},
        )

    return app


# Load environment variables from .env file
load_dotenv()

app = create_app()
