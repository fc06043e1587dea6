"""
Public pages and health check.
"""

from fastapi import APIRouter, Request

from common.utils import success_response
from storefront.rendering import render_page

router = APIRouter(tags=["pages"])


@router.get("/")
async def index(request: Request):
    return await render_page(request, "index.html")


@router.get("/health", tags=["Health"])
async def health(request: Request):
    """
    Health check endpoint.

    Returns the status of the app and its database connection.
    """
    database = getattr(request.app.state, "database", None)
    return success_response({
        "status": "ok",
        "database": await database.ping() if database is not None else False,
    })
