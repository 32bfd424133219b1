from pydantic import BaseModel, EmailStr, Field

from kontify.schemas.advisor import AdvisorResponse


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=256)


class LoginResponse(BaseModel):
    success: bool = True
    advisor: AdvisorResponse
    token: str
    token_type: str = "bearer"
