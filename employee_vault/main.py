from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from employee_vault.api.v1.router import api_router
from employee_vault.core.config import settings
from employee_vault.core.keyvault import load_secrets
from employee_vault.services.employee_service import employee_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    resolved = settings
    try:
        resolved = await load_secrets(settings)
    except Exception:
        logger.exception("Failed to load Key Vault secrets, continuing with environment settings")
    try:
        await employee_service.initialize(resolved)
    except Exception:
        logger.exception("Failed to initialize EmployeeService, continuing without DB")
    yield
    await employee_service.close()


app = FastAPI(
    title="Employee Vault API",
    description="Employee records backed by Cosmos DB with Key Vault managed credentials",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Employee Vault API"}
