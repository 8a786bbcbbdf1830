from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import chats, health
from app.core.config import settings
from app.core.logging import api_logger
from app.core.middleware import (
    RequestContextMiddleware,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.db.database import Database
from app.integrations.pushy import PushyClient


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: acquire the store handle and the push client
    database = getattr(app.state, "database", None) or Database.from_settings()
    app.state.database = database
    await database.create_tables()
    app.state.push_client = PushyClient()
    api_logger.info(f"{settings.APP_NAME} started", env=settings.APP_ENV)
    yield
    # Shutdown
    await app.state.push_client.aclose()
    await database.dispose()
    api_logger.info(f"{settings.APP_NAME} stopped")


app = FastAPI(
    title="chatrooms API",
    description="Chat room membership backend",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestContextMiddleware)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(chats.router, prefix="/chats", tags=["Chats"])
app.include_router(health.router, prefix="", tags=["Health"])
