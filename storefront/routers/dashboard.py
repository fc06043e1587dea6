"""
Router for signed-in user pages.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from common.utils import success_response
from common.utils.exceptions import ValidationException
from storefront.dependencies import get_profile_service, get_session, require_session
from storefront.models.session import SessionData, SessionIdentity
from storefront.rendering import render_page
from storefront.schemas.auth import ProfileUpdateRequest, parse_form
from storefront.services.user.profile_service import ProfileService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"])

CurrentUser = Annotated[SessionIdentity, Depends(require_session)]
Profiles = Annotated[ProfileService, Depends(get_profile_service)]


@router.get("/dashboard")
async def dashboard(request: Request, identity: CurrentUser):
    return await render_page(request, "dashboard.html")


@router.get("/profile")
async def profile_page(request: Request, identity: CurrentUser, profiles: Profiles):
    user = await profiles.get_profile(identity)
    return await render_page(
        request,
        "profile.html",
        {"user": user, "notice": "Profile updated." if request.query_params.get("saved") else None},
    )


@router.post("/profile")
async def update_profile(request: Request, identity: CurrentUser, profiles: Profiles):
    """
    Save address and contact number.
    """
    form = await request.form()

    try:
        body = parse_form(ProfileUpdateRequest, form)
        await profiles.update_profile(identity, body.address, body.contactNumber)
    except ValidationException as exc:
        user = await profiles.get_profile(identity)
        return await render_page(
            request,
            "profile.html",
            {"user": user, "error": exc.message, "errors": exc.errors},
            status_code=exc.status_code,
        )

    return RedirectResponse("/profile?saved=1", status_code=303)


@router.get("/api/session")
async def session_info(
    identity: CurrentUser,
    session: Annotated[SessionData, Depends(get_session)],
):
    """
    Current session snapshot as JSON.
    """
    return success_response({
        "user": identity.to_document(),
        "lastActivity": session.last_activity.isoformat() if session.last_activity else None,
    })
