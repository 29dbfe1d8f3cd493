from pydantic import BaseModel, ConfigDict, Field

from typing import Optional


class LoginRequest(BaseModel):
    # Both are checked by the login handler so a missing field is a 400, not a 422
    email: Optional[str] = None
    password: Optional[str] = None


class TokenPairOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")


class TokenPairResponse(BaseModel):
    data: TokenPairOut


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
