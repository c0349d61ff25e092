"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Wire names are camelCase (and provider-specific for captcha tokens); Python
attribute names stay snake_case through aliases.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SignupRequestBody(BaseModel):
    """Request model for account signup."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=1, max_length=128)
    password: str = Field(..., min_length=1, description="Account password")
    host: str | None = Field(None, description="Remote host, honoured in test mode only")
    invitation_code: str | None = Field(None, alias="invitationCode")
    email_address: str | None = Field(None, alias="emailAddress")
    hcaptcha_response: str | None = Field(None, alias="hcaptcha-response")
    recaptcha_response: str | None = Field(None, alias="g-recaptcha-response")
    turnstile_response: str | None = Field(None, alias="turnstile-response")


class AccountResponse(BaseModel):
    """Response model for an immediately created account."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    host: str | None
    created_at: datetime = Field(..., alias="createdAt")
    token: str


class SignupPendingRequest(BaseModel):
    """Request model for completing a pending registration."""

    code: str = Field(..., min_length=1, description="Confirmation code from the signup email")


class SessionResponse(BaseModel):
    """Response model for an established session."""

    id: str
    i: str


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: ErrorDetail
