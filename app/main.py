import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import models  # noqa: F401  registers tables on Base.metadata
from app.config import log_configuration_warnings, settings
from app.database import Base, engine
from app.errors import ChatSDKError, chat_sdk_error_handler
from app.routers import auth, chat, documents, files, history, monitoring, vote

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug)

app.add_exception_handler(ChatSDKError, chat_sdk_error_handler)

# CORS configuration - allow both localhost and production URLs
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.frontend_url,
        "http://localhost:3000",
        "http://localhost:3001",  # Next.js sometimes uses 3001
        "http://127.0.0.1:3000",
        "http://127.0.0.1:3001",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(auth.session_router)
app.include_router(chat.router)
app.include_router(history.router)
app.include_router(vote.router)
app.include_router(documents.router)
app.include_router(files.router)
app.include_router(monitoring.router)


@app.on_event("startup")
async def startup():
    """Initialize database tables on startup"""
    log_configuration_warnings(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
