from fastapi import Depends, HTTPException, status

from campus.core.security import get_current_user


def require_role(required_role: str):
    """
    Dependency factory checking the authenticated user has the given role.
    """
    def role_checker(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") != required_role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {required_role}"
            )
        return user
    return role_checker


require_teacher = require_role("teacher")
require_student = require_role("student")


def ensure_same_user(user: dict, claimed_id: str, label: str = "User") -> str:
    """
    Reject requests whose body or query names someone other than the caller.

    Returns the authenticated id, which is the only id handlers should use
    in storage predicates.
    """
    if claimed_id != user["id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"{label} ID does not match the authenticated user"
        )
    return user["id"]
