import logging

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from src.config import settings
from src.core.exceptions import AccessDenied, RateLimitExceeded, TransientError
from src.access.constants import ACCESS_LINK_SENT_MESSAGE

from .dependencies import (
    AccessGatewayServiceDep, SessionCheckerDep, extract_bearer_token, session_cookie_name, session_cookie_names,
)

logger = logging.getLogger(__name__)

access_router = APIRouter(
    tags=["Document Access"]
)

class AccessRequest(BaseModel):
    email: str
    resource_path: str

class AccessRequestAccepted(BaseModel):
    message: str

@access_router.post("/request", response_model=AccessRequestAccepted, status_code=status.HTTP_202_ACCEPTED)
async def request_access_link(
    access_request: AccessRequest,
    gateway: AccessGatewayServiceDep,
):
    """Demande un lien d'accès à usage unique pour une ressource protégée."""
    logger.info(f"API request_access pour la ressource {access_request.resource_path}")
    try:
        await gateway.request_access(access_request.email, access_request.resource_path)
        return AccessRequestAccepted(message=ACCESS_LINK_SENT_MESSAGE)
    except AccessDenied as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
    except RateLimitExceeded as e:
        headers = {"Retry-After": str(e.retry_after)} if e.retry_after else None
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=e.message, headers=headers)
    except TransientError as e:
        logger.error(f"Erreur transitoire request_access: {e.message}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=settings.TRANSIENT_ERROR_MSG)
    except Exception as e:
        logger.error(f"Erreur API request_access: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne demande d'accès.")

@access_router.get("/redeem")
async def redeem_access_link(
    gateway: SessionCheckerDep,
    token: str = Query(..., min_length=1, description="Jeton reçu par email"),
):
    """Consomme le lien, pose le cookie de session et redirige vers la ressource."""
    try:
        redeemed = await gateway.redeem(token)
    except AccessDenied as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)

    response = RedirectResponse(url=redeemed.redirect_to, status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        key=session_cookie_name(redeemed.redirect_to),
        value=redeemed.session_token,
        max_age=settings.ACCESS_SESSION_TTL_MINUTES * 60,
        httponly=True,
        secure=settings.ACCESS_COOKIE_SECURE,
        samesite="lax",
    )
    return response

@access_router.post("/logout")
async def logout(request: Request, gateway: SessionCheckerDep):
    """Révoque les sessions présentées (cookies et en-tête Bearer) et efface leurs cookies."""
    cookie_names = session_cookie_names(request)
    tokens = [request.cookies[name] for name in cookie_names]
    bearer = extract_bearer_token(request)
    if bearer:
        tokens.append(bearer)
    for token in tokens:
        await gateway.logout(token)

    response = JSONResponse({"message": "Session fermée."})
    for name in cookie_names:
        response.delete_cookie(name)
    return response
