"""
Passcode endpoints for the dashboard access gate
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from app.core.config import settings
from app.core.logging_config import logger
from app.core.security import verify_passcode

router = APIRouter(tags=["Authentication"])


class PasscodeRequest(BaseModel):
    input: str = ""


@router.post("/verify-passcode")
async def verify_passcode_endpoint(body: PasscodeRequest, request: Request):
    """Exchange the shared passcode for an httpOnly access cookie"""
    client_ip = request.client.host if request.client else None

    if not verify_passcode(body.input):
        logger.log_auth_event("verify_passcode", success=False, ip_address=client_ip)
        return JSONResponse(status_code=401, content={"success": False})

    logger.log_auth_event("verify_passcode", success=True, ip_address=client_ip)
    response = JSONResponse(content={"success": True})
    response.set_cookie(
        key=settings.PASSCODE_COOKIE_NAME,
        value=body.input,
        max_age=settings.PASSCODE_COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        samesite="lax",
        secure=not settings.is_dev_mode(),
    )
    return response


@router.get("/logout")
async def logout():
    response = RedirectResponse(url=settings.public_url("auth/passcode"), status_code=307)
    response.delete_cookie(key=settings.PASSCODE_COOKIE_NAME, path="/")
    return response
