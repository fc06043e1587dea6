from storefront.services.user.user_store import UserStore, normalize_email
from storefront.services.user.admin_user_service import AdminUserService
from storefront.services.user.profile_service import ProfileService

__all__ = ["UserStore", "normalize_email", "AdminUserService", "ProfileService"]
