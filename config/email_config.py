"""
Email service configuration constants.

These are fixed values that don't change per environment.
Environment-specific values (API keys, hosts) are loaded from settings.
"""

# Resend API endpoint
RESEND_API_URL = "https://api.resend.com/emails"

# Outbound request timeout (seconds)
EMAIL_SEND_TIMEOUT = 10.0

# Default values (can be overridden by settings)
EMAIL_DEFAULTS = {
    "mode": "console",
    "from_name": "HelloStore",
    "team_name": "The HelloStore Team",
}
