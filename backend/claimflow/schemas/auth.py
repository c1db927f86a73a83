from pydantic import BaseModel, EmailStr, Field

from claimflow.schemas.user import UserOut


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
    is_approver: bool


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    department: str | None = None


class ForgotPasswordRequest(BaseModel):
    username: str = Field(min_length=1)


class MessageResponse(BaseModel):
    success: bool = True
    message: str
