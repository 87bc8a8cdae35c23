from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..auth import AuthError, AuthService, check_password, validate_email
from .deps import get_auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


class SignUpRequest(BaseModel):
    email: str = ""
    password: str = ""
    name: str = ""


class SignInRequest(BaseModel):
    email: str = ""
    password: str = ""


class PasswordCheckRequest(BaseModel):
    password: str
    email: str = ""


@router.post("/signup")
async def sign_up(req: SignUpRequest, auth: AuthService = Depends(get_auth_service)):
    try:
        user = auth.sign_up(req.email, req.password, req.name)
    except AuthError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    return {"user": user.model_dump(mode="json")}


@router.post("/signin")
async def sign_in(req: SignInRequest, auth: AuthService = Depends(get_auth_service)):
    try:
        user = auth.sign_in(req.email, req.password)
    except AuthError as e:
        return JSONResponse({"error": str(e)}, status_code=401)
    return {"user": user.model_dump(mode="json")}


@router.post("/signout")
async def sign_out(auth: AuthService = Depends(get_auth_service)):
    auth.sign_out()
    return {"status": "ok"}


@router.get("/me")
async def current_user(auth: AuthService = Depends(get_auth_service)):
    user = auth.current_user()
    return {
        "user": user.model_dump(mode="json") if user else None,
        "is_authenticated": auth.is_authenticated(),
    }


@router.post("/password-check")
async def password_check(req: PasswordCheckRequest):
    result = check_password(req.password)
    body = result.model_dump()
    if req.email:
        body["email_valid"] = validate_email(req.email)
    return body
