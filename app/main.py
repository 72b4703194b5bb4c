# app/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.db import engine
from app.errors import register_error_handlers
from app.observability import RequestLogMiddleware, setup_logging
from app.routers.accounts import router as accounts_router
from app.routers.audit_logs import router as audit_logs_router
from app.routers.auth import router as auth_router
from app.routers.invites import router as invites_router
from app.routers.saving_goals import router as saving_goals_router
from app.routers.system import router as system_router
from app.routers.transactions import router as transactions_router
from app.routers.users import router as users_router

settings = get_settings()
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # schema is managed by Alembic (alembic upgrade head), not created here
    logging.getLogger("db").info("DB URL in use: %s", engine.url)  # password masked
    yield


app = FastAPI(title="Shared Ledger", version="0.1.0", lifespan=lifespan)

# Middleware order: CORS outermost, then request logging
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routers
app.include_router(system_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(accounts_router)
app.include_router(audit_logs_router)
app.include_router(invites_router)
app.include_router(transactions_router)
app.include_router(saving_goals_router)
