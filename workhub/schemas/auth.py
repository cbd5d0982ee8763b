"""
Authentication schemas
"""
from typing import Optional
from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Login request schema"""
    email: str = Field(..., description="Email, or the name part before @ for company accounts")
    password: str = Field(..., description="Password")


class TokenResponse(BaseModel):
    """
    Login response.

    Either access_token is set, or reset_required is true and the client must
    complete first login for user_id before it gets a token.
    """
    access_token: Optional[str] = None
    token_type: str = "bearer"
    role: Optional[str] = None
    redirect_url: Optional[str] = None
    reset_required: bool = False
    user_id: Optional[int] = None


class FirstLoginRequest(BaseModel):
    """Replace the temporary password issued by an admin"""
    email: str
    current_password: str
    new_password: str
    confirm_password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str
    confirm_password: str


class MessageResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
