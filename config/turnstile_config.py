"""
Cloudflare Turnstile constants.
"""

TURNSTILE_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"

# Form field the Turnstile widget posts its token in
TURNSTILE_RESPONSE_FIELD = "cf-turnstile-response"

TURNSTILE_TIMEOUT = 10.0
