import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from supabase import Client

from campus.core.security import bearer_scheme, get_current_user, load_profile
from campus.core.session_cache import clear_expired, create_session, invalidate_session
from campus.db.supabase import get_supabase
from campus.schemas.auth import LoginRequest, LoginResponse, UserResponse
from campus.schemas.common import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, db: Client = Depends(get_supabase)):
    """
    Login with email and password.

    Credentials are checked by Supabase auth; the returned token is a
    server-side session that every other endpoint expects as a Bearer
    token.
    """
    try:
        auth_response = db.auth.sign_in_with_password({
            "email": request.email,
            "password": request.password
        })
    except Exception as e:
        logger.info("Login failed for %s: %s", request.email, e)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not auth_response.user or not auth_response.session:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    user_id = str(auth_response.user.id)
    load_profile(db, user_id)

    clear_expired()
    token = create_session(user_id)
    return LoginResponse(user_id=user_id, token=token)


@router.get("/me", response_model=UserResponse)
def get_current_user_profile(user: dict = Depends(get_current_user)):
    """Profile of the authenticated caller."""
    return UserResponse(**user)


@router.post("/logout", response_model=MessageResponse)
def logout(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    user: dict = Depends(get_current_user),
):
    invalidate_session(credentials.credentials)
    return MessageResponse(message="Logged out")
