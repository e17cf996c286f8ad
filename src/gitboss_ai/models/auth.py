"""
Login / register payloads.
"""

from typing import Optional
from pydantic import BaseModel


class LoginResponse(BaseModel):
    token: Optional[str] = None
    expires: Optional[int] = None  # epoch seconds
    error: Optional[str] = None


class RegisterResponse(BaseModel):
    message: Optional[str] = None
    error: Optional[str] = None
