"""
Router for the account pages: registration, email verification, login,
logout and password reset.

Form posts re-render the same page with the error message and the
exception's status code; nothing is written when a check fails.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from common.utils.exceptions import APIException, ValidationException
from config import TURNSTILE_RESPONSE_FIELD
from storefront.dependencies import get_auth_flow, get_client_ip, get_session_cookie
from storefront.middleware.session_cookie import SessionCookie
from storefront.rendering import render_page
from storefront.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    parse_form,
)
from storefront.services.auth.auth_flow import AuthFlowController

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

AuthFlow = Annotated[AuthFlowController, Depends(get_auth_flow)]
Cookie = Annotated[SessionCookie, Depends(get_session_cookie)]

TOKEN_ERROR_CODES = ("TOKEN_NOT_FOUND", "TOKEN_EXPIRED")


def _error_context(exc: APIException) -> dict:
    return {
        "error": exc.message,
        "errors": exc.errors if isinstance(exc, ValidationException) else [],
    }


def _challenge_token(form) -> Optional[str]:
    return form.get(TURNSTILE_RESPONSE_FIELD) or None


# ─────────────────────────────────────────────────────────────────
# Registration
# ─────────────────────────────────────────────────────────────────

@router.get("/register")
async def register_page(request: Request):
    return await render_page(request, "register.html", {"form": {}})


@router.post("/register")
async def register(request: Request, auth_flow: AuthFlow):
    """
    Create an account and send the verification email.
    """
    form = await request.form()
    submitted = {key: form.get(key, "") for key in ("firstName", "lastName", "email")}

    try:
        body = parse_form(RegisterRequest, form)
        result = await auth_flow.register(
            first_name=body.firstName,
            last_name=body.lastName,
            email=body.email,
            raw_password=body.password,
            challenge_token=_challenge_token(form),
            client_ip=get_client_ip(request),
        )
    except APIException as exc:
        return await render_page(
            request,
            "register.html",
            {"form": submitted, **_error_context(exc)},
            status_code=exc.status_code,
        )

    return await render_page(
        request,
        "register_success.html",
        {
            "first_name": result.user.first_name,
            "email": result.user.email,
            "email_sent": result.email_sent,
        },
        status_code=201,
    )


@router.get("/verify/{token}")
async def verify_email(request: Request, token: str, auth_flow: AuthFlow):
    """
    Consume a verification link.
    """
    try:
        user = await auth_flow.verify_email(token)
    except APIException as exc:
        return await render_page(
            request,
            "verify_result.html",
            {"verified": False, "error": exc.message},
            status_code=exc.status_code,
        )

    return await render_page(
        request,
        "verify_result.html",
        {"verified": True, "first_name": user.first_name},
    )


# ─────────────────────────────────────────────────────────────────
# Login / logout
# ─────────────────────────────────────────────────────────────────

@router.get("/login")
async def login_page(request: Request):
    expired = request.query_params.get("expired") == "1"
    return await render_page(request, "login.html", {"expired": expired})


@router.post("/login")
async def login(request: Request, auth_flow: AuthFlow, cookie: Cookie):
    """
    Authenticate and start a session, then go to the dashboard.
    """
    form = await request.form()

    try:
        body = parse_form(LoginRequest, form)
        result = await auth_flow.login(
            email=body.email,
            raw_password=body.password,
            challenge_token=_challenge_token(form),
            client_ip=get_client_ip(request),
            previous_session_id=cookie.read(request),
        )
    except APIException as exc:
        return await render_page(
            request,
            "login.html",
            {"email": form.get("email", ""), **_error_context(exc)},
            status_code=exc.status_code,
        )

    response = RedirectResponse("/dashboard", status_code=303)
    cookie.set(response, result.session_id)
    return response


@router.get("/logout")
async def logout(request: Request, auth_flow: AuthFlow, cookie: Cookie):
    """
    Destroy the session and return to the login page.
    """
    await auth_flow.logout(cookie.read(request))

    response = RedirectResponse("/login", status_code=303)
    cookie.clear(response)
    return response


# ─────────────────────────────────────────────────────────────────
# Password reset
# ─────────────────────────────────────────────────────────────────

@router.get("/password/forgot")
async def forgot_password_page(request: Request):
    return await render_page(request, "password_forgot.html")


@router.post("/password/forgot")
async def forgot_password(request: Request, auth_flow: AuthFlow):
    """
    Email a reset link. The page reads the same whether or not the
    account exists.
    """
    form = await request.form()

    try:
        body = parse_form(ForgotPasswordRequest, form)
    except APIException as exc:
        return await render_page(
            request,
            "password_forgot.html",
            {"email": form.get("email", ""), **_error_context(exc)},
            status_code=exc.status_code,
        )

    await auth_flow.request_password_reset(body.email)
    return await render_page(request, "password_forgot.html", {"submitted": True})


@router.get("/password/reset/{token}")
async def reset_password_page(request: Request, token: str, auth_flow: AuthFlow):
    try:
        await auth_flow.check_reset_token(token)
    except APIException as exc:
        return await render_page(
            request,
            "password_reset.html",
            {"token_valid": False, "error": exc.message},
            status_code=exc.status_code,
        )

    return await render_page(request, "password_reset.html", {"token_valid": True, "token": token})


@router.post("/password/reset/{token}")
async def reset_password(request: Request, token: str, auth_flow: AuthFlow):
    """
    Set a new password from a reset link.
    """
    form = await request.form()

    try:
        body = parse_form(ResetPasswordRequest, form)
        await auth_flow.reset_password(token, body.password, body.passwordConfirm)
    except APIException as exc:
        return await render_page(
            request,
            "password_reset.html",
            {
                "token": token,
                "token_valid": exc.code not in TOKEN_ERROR_CODES,
                **_error_context(exc),
            },
            status_code=exc.status_code,
        )

    return await render_page(request, "password_reset.html", {"done": True})
