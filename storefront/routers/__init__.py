"""
HelloStore routers.

All routers are imported here for easy access.
"""

from storefront.routers.pages import router as pages_router
from storefront.routers.auth import router as auth_router
from storefront.routers.dashboard import router as dashboard_router
from storefront.routers.admin import router as admin_router

__all__ = [
    "pages_router",
    "auth_router",
    "dashboard_router",
    "admin_router",
]
