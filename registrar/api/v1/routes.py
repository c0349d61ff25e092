"""
API v1 routes.

Defines REST endpoints for account signup:
- POST /v1/signup - Create an account, or a pending registration when
  the instance requires email confirmation
- POST /v1/signup-pending - Confirm a pending registration and sign in

Route handlers are sync so FastAPI runs the blocking domain calls
(database, bcrypt, captcha HTTP) in its threadpool. Domain errors propagate
to the handlers in registrar.api.errors.
"""

from fastapi import APIRouter, Depends, Request, Response, status

from registrar.api.dependencies import get_pending_completion_service, get_signup_service
from registrar.api.models import (
    AccountResponse,
    ErrorResponse,
    SessionResponse,
    SignupPendingRequest,
    SignupRequestBody,
)
from registrar.domain.models import CaptchaKind, CreatedAccount, SignupRequest
from registrar.domain.pending import PendingCompletionService
from registrar.domain.signup import SignupService

router = APIRouter(tags=["v1"])


@router.post(
    "/signup",
    response_model=AccountResponse,
    responses={
        204: {"description": "Pending registration created, confirmation email sent"},
        400: {"model": ErrorResponse, "description": "Signup rejected"},
        422: {"description": "Validation error"},
    },
    summary="Sign up a new account",
    description="Create a local account. When the instance requires email "
    "confirmation, a confirmation link is emailed instead and no account "
    "exists until it is used.",
)
def signup(
    request_data: SignupRequestBody,
    service: SignupService = Depends(get_signup_service),
) -> AccountResponse | Response:
    """
    Sign up a new account.

    - **username**: Local username (letters, digits, underscore; max 20)
    - **password**: Account password
    - **invitationCode**: Required when registration is closed
    - **emailAddress**: Required when the instance requires email confirmation
    """
    signup_request = SignupRequest(
        username=request_data.username,
        password=request_data.password,
        host=request_data.host,
        invitation_code=request_data.invitation_code,
        email_address=request_data.email_address,
        captcha_responses={
            CaptchaKind.HCAPTCHA: request_data.hcaptcha_response,
            CaptchaKind.RECAPTCHA: request_data.recaptcha_response,
            CaptchaKind.TURNSTILE: request_data.turnstile_response,
        },
    )

    outcome = service.signup(signup_request)

    if not isinstance(outcome, CreatedAccount):
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    account = outcome.account
    return AccountResponse(
        id=account.id,
        username=account.username,
        host=account.host,
        created_at=account.created_at,
        token=outcome.token,
    )


@router.post(
    "/signup-pending",
    response_model=SessionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired code"},
        422: {"description": "Validation error"},
    },
    summary="Complete a pending registration",
    description="Submit the confirmation code from the signup email to create "
    "the account and sign in.",
)
def signup_pending(
    request_data: SignupPendingRequest,
    request: Request,
    service: PendingCompletionService = Depends(get_pending_completion_service),
) -> SessionResponse:
    """
    Complete a pending registration.

    - **code**: Confirmation code from the signup email
    """
    context = {
        "ip": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }

    session = service.complete(request_data.code, context)

    return SessionResponse(id=session.id, i=session.i)
