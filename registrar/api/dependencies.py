"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from datetime import datetime, timezone
from functools import lru_cache

from fastapi import Request
from psycopg_pool import ConnectionPool

from registrar.adapters.captcha.http import HttpCaptchaVerifier
from registrar.adapters.ratelimit.memory import SlidingWindowRegistrationLimiter
from registrar.adapters.repository.postgres import (
    PostgresPolicyProvider,
    PostgresRegistrationStore,
)
from registrar.adapters.session.token import TokenSessionIssuer
from registrar.adapters.smtp.console import ConsoleEmailSender
from registrar.adapters.validation.email import EmailAddressValidator
from registrar.config.settings import get_settings
from registrar.domain.accounts import AccountService
from registrar.domain.pending import PendingCompletionService
from registrar.domain.signup import SignupService

# Module-level singletons - stateless adapters
_email_sender = ConsoleEmailSender()
_session_issuer = TokenSessionIssuer()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_store(request: Request) -> PostgresRegistrationStore:
    """Create store with connection pool from app state."""
    return PostgresRegistrationStore(get_pool(request))


def get_policy_provider(request: Request) -> PostgresPolicyProvider:
    return PostgresPolicyProvider(get_pool(request))


def get_email_sender() -> ConsoleEmailSender:
    """Get console email sender (singleton)."""
    return _email_sender


@lru_cache
def get_registration_limiter() -> SlidingWindowRegistrationLimiter:
    """Get process-wide registration limiter; its window must outlive requests."""
    settings = get_settings()
    return SlidingWindowRegistrationLimiter(
        max_registrations=settings.registration_limit_count,
        window_seconds=settings.registration_limit_window_seconds,
    )


@lru_cache
def get_captcha_verifier() -> HttpCaptchaVerifier:
    return HttpCaptchaVerifier(timeout=get_settings().captcha_timeout_seconds)


def get_account_service(request: Request) -> AccountService:
    return AccountService(
        policy_provider=get_policy_provider(request),
        clock=utcnow,
        bcrypt_cost=get_settings().bcrypt_cost,
    )


def get_signup_service(request: Request) -> SignupService:
    """
    Create signup service with injected dependencies.

    Wires together storage, policy and every collaborator for the domain service.
    """
    settings = get_settings()
    store = get_store(request)
    return SignupService(
        config=settings.signup_config(),
        store=store,
        policy_provider=get_policy_provider(request),
        captcha_verifier=get_captcha_verifier(),
        email_validator=EmailAddressValidator(store, settings.email_check_deliverability),
        email_sender=get_email_sender(),
        limiter=get_registration_limiter(),
        accounts=get_account_service(request),
        clock=utcnow,
    )


def get_pending_completion_service(request: Request) -> PendingCompletionService:
    """Create pending completion service with injected dependencies."""
    return PendingCompletionService(
        config=get_settings().signup_config(),
        store=get_store(request),
        accounts=get_account_service(request),
        sessions=_session_issuer,
        clock=utcnow,
    )
