"""
HelloStore web application.

Account lifecycle and access control for the storefront: registration,
email verification, sessions with idle timeout, and admin user management.
"""
