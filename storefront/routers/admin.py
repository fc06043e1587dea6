"""
Router for admin user management.

Every route depends on ``require_admin``; there is no other admin check.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from common.utils.exceptions import APIException, ValidationException
from storefront.dependencies import get_admin_user_service, require_admin
from storefront.models.session import SessionIdentity
from storefront.models.user import AccountStatus, Role
from storefront.rendering import render_page
from storefront.schemas.auth import AdminUserUpdateRequest, parse_form
from storefront.services.user.admin_user_service import AdminUserService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])

Admin = Annotated[SessionIdentity, Depends(require_admin)]
AdminUsers = Annotated[AdminUserService, Depends(get_admin_user_service)]

ROLE_CHOICES = [role.value for role in Role]
STATUS_CHOICES = [status.value for status in AccountStatus]


@router.get("/admin")
async def admin_dashboard(request: Request, admin: Admin, admin_users: AdminUsers):
    stats = await admin_users.get_stats()
    return await render_page(request, "admin/dashboard.html", {"stats": stats})


@router.get("/list")
async def list_users(request: Request, admin: Admin, admin_users: AdminUsers):
    users = await admin_users.list_users()
    return await render_page(request, "admin/users.html", {"users": users})


@router.get("/edit/{user_id}")
async def edit_user_page(request: Request, user_id: str, admin: Admin, admin_users: AdminUsers):
    user = await admin_users.get_user(user_id)
    return await render_page(
        request,
        "admin/edit_user.html",
        {"user": user, "roles": ROLE_CHOICES, "statuses": STATUS_CHOICES},
    )


@router.post("/edit/{user_id}")
async def edit_user(request: Request, user_id: str, admin: Admin, admin_users: AdminUsers):
    """
    Update a user's role and account status.
    """
    form = await request.form()

    try:
        body = parse_form(AdminUserUpdateRequest, form)
        await admin_users.update_user(user_id, body.role, body.accountStatus, actor=admin)
    except ValidationException as exc:
        user = await admin_users.get_user(user_id)
        return await render_page(
            request,
            "admin/edit_user.html",
            {
                "user": user,
                "roles": ROLE_CHOICES,
                "statuses": STATUS_CHOICES,
                "error": exc.message,
                "errors": exc.errors,
            },
            status_code=exc.status_code,
        )

    return RedirectResponse("/list", status_code=303)


@router.post("/delete/{user_id}")
async def delete_user(request: Request, user_id: str, admin: Admin, admin_users: AdminUsers):
    """
    Delete a user. Admins cannot delete their own record.
    """
    try:
        await admin_users.delete_user(admin, user_id)
    except APIException as exc:
        logger.warning(f"Delete of user {user_id} refused: {exc.code}")
        users = await admin_users.list_users()
        return await render_page(
            request,
            "admin/users.html",
            {"users": users, "error": exc.message},
            status_code=exc.status_code,
        )

    return RedirectResponse("/list", status_code=303)
