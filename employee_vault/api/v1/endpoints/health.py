from __future__ import annotations

from fastapi import APIRouter, Depends

from employee_vault.core import keyvault
from employee_vault.core.config import settings
from employee_vault.core.dependencies import get_current_user
from employee_vault.models.auth import UserInfo
from employee_vault.services.employee_service import employee_service

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check():
    services: dict[str, str] = {}

    try:
        if employee_service.initialized:
            ok = await employee_service.check_connection()
            services["cosmos_db"] = "ok" if ok else "error"
        else:
            services["cosmos_db"] = "not_configured"
    except Exception:
        services["cosmos_db"] = "error"

    services["key_vault"] = keyvault.key_vault_status

    all_ok = all(v in ("ok", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "services": services,
    }


@router.get("/protected")
async def health_protected(user: UserInfo = Depends(get_current_user)):
    return {"status": "ok", "user": user.model_dump()}


@router.get("/ready")
async def readiness_probe():
    return {"ready": True}
