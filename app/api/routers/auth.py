from fastapi import APIRouter, Depends, Response, status

from app.api.deps import get_auth_service, get_required_access_token
from app.schemas.auth import AuthUser, Credentials, SessionResponse, SignUpResponse
from app.schemas.common import ErrorResponse
from app.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])

_AUTH_ERRORS = {
    401: {"model": ErrorResponse, "description": "rejected by the auth service"},
    503: {"model": ErrorResponse, "description": "auth service unavailable"},
}


@router.post("/sign-in", response_model=SessionResponse, responses=_AUTH_ERRORS)
async def sign_in(payload: Credentials, svc: AuthService = Depends(get_auth_service)):
    return await svc.sign_in(payload.email, payload.password)


@router.post(
    "/sign-up",
    response_model=SignUpResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_AUTH_ERRORS, 202: {"model": SignUpResponse, "description": "confirm email"}},
)
async def sign_up(
    payload: Credentials,
    response: Response,
    svc: AuthService = Depends(get_auth_service),
):
    result = await svc.sign_up(payload.email, payload.password)
    if result.confirmation_required:
        response.status_code = status.HTTP_202_ACCEPTED
    return result


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT, responses=_AUTH_ERRORS)
async def sign_out(
    token: str = Depends(get_required_access_token),
    svc: AuthService = Depends(get_auth_service),
):
    await svc.sign_out(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=AuthUser, responses=_AUTH_ERRORS)
async def me(
    token: str = Depends(get_required_access_token),
    svc: AuthService = Depends(get_auth_service),
):
    return await svc.current_user(token)
