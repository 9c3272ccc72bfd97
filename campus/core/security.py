import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client

from campus.core.session_cache import get_user_id_for_token
from campus.db.supabase import get_supabase

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def load_profile(db: Client, user_id: str) -> dict:
    """
    Fetch the profile row for a user id.

    Raises:
        HTTPException: 401 if no profile exists or it has no role
    """
    result = (
        db.table("profiles")
        .select("id, email, full_name, role")
        .eq("id", user_id)
        .execute()
    )
    if not result.data:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User profile not found"
        )

    profile = result.data[0]
    if not profile.get("role"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User profile incomplete. Role information missing."
        )

    return {
        "id": profile["id"],
        "email": profile.get("email"),
        "role": profile["role"],
        "full_name": profile.get("full_name"),
    }


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Client = Depends(get_supabase),
) -> dict:
    """
    Resolve the caller from the bearer session token.

    The token is issued by /auth/login and mapped to a profile id on the
    server; the client never names its own identity.

    Returns:
        dict: id, email, role and full_name of the authenticated profile

    Raises:
        HTTPException: 401 when the token is missing, unknown or expired
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )

    user_id = get_user_id_for_token(credentials.credentials)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session"
        )

    try:
        return load_profile(db, user_id)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Unexpected error loading profile %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to verify user"
        )
