from pydantic import BaseModel

from src.domain.models.user_schemas import Email, Password, UserResponse


class LoginRequest(BaseModel):
    email: Email
    password: Password


class LoginResponse(BaseModel):
    user: UserResponse
    token: str
