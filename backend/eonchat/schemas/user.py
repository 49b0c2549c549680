from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Optional
from uuid import UUID
import re

USERNAME_PATTERN = re.compile(r'^(?=.*[0-9])[a-zA-Z0-9]+$')

def _check_password(v: str) -> str:
    if len(v) < 8:
        raise ValueError('Password must be at least 8 characters long')
    return v

class OtpRequest(BaseModel):
    email: EmailStr

class OtpVerify(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6)

class UserCreate(BaseModel):
    username: str = Field(..., min_length=4, max_length=30)
    email: Optional[EmailStr] = None
    password: str

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        if not USERNAME_PATTERN.match(v):
            raise ValueError(f'{v} is not a valid username! Must contain a number and no special characters.')
        return v

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if v else None

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return _check_password(v)

class UserLogin(BaseModel):
    username: str
    password: str

class PasswordReset(BaseModel):
    email: EmailStr
    otp: str
    new_password: str

    @field_validator('new_password')
    @classmethod
    def validate_password(cls, v):
        return _check_password(v)

class UserSummary(BaseModel):
    id: UUID
    username: str
    email: Optional[str] = None

    class Config:
        from_attributes = True

class NetworkNode(BaseModel):
    id: UUID
    username: str
    friends: List[str] = []

    class Config:
        from_attributes = True

class RecommendationResponse(BaseModel):
    id: str
    username: Optional[str] = None
    mutual_count: int

class FriendAction(BaseModel):
    friend_id: UUID

class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserSummary

class SignupResponse(BaseModel):
    message: str
    user_id: UUID
