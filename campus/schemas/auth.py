from pydantic import BaseModel
from typing import Optional

from campus.schemas.common import CamelModel

class UserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    role: str
    full_name: Optional[str] = None

class LoginRequest(BaseModel):
    email: str
    password: str

class LoginResponse(CamelModel):
    user_id: str
    token: str
