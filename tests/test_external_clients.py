"""Unit tests for the Turnstile verifier and the email service."""

import json
import pytest
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs

import aiosmtplib
import httpx

from storefront.services.auth.turnstile_verifier import TurnstileVerifier
from storefront.services.email.email_service import EmailService


VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"


# ─────────────────────────────────────────────────────────────────
# TurnstileVerifier
# ─────────────────────────────────────────────────────────────────


class TestTurnstileVerifier:
    @pytest.mark.asyncio
    async def test_posts_form_and_returns_result(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["form"] = parse_qs(request.content.decode())
            return httpx.Response(200, json={"success": True})

        verifier = TurnstileVerifier("secret", transport=httpx.MockTransport(handler))

        result = await verifier.verify("token", "1.2.3.4")

        assert result == {"success": True}
        assert seen["url"] == VERIFY_URL
        assert seen["form"] == {"secret": ["secret"], "response": ["token"], "remoteip": ["1.2.3.4"]}

    @pytest.mark.asyncio
    async def test_missing_token_fails_without_request(self):
        handler = AsyncMock()
        verifier = TurnstileVerifier("secret", transport=httpx.MockTransport(handler))

        result = await verifier.verify("", "1.2.3.4")

        assert result["success"] is False
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejection_passes_through(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"success": False, "error-codes": ["invalid-input-response"]})
        )
        result = await TurnstileVerifier("secret", transport=transport).verify("bad")
        assert result["success"] is False

    @pytest.mark.asyncio
    async def test_network_error_counts_as_failure(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        verifier = TurnstileVerifier("secret", transport=httpx.MockTransport(handler))
        assert await verifier.verify("token") == {"success": False}

    @pytest.mark.asyncio
    async def test_server_error_counts_as_failure(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(502, text="bad gateway"))
        assert await TurnstileVerifier("secret", transport=transport).verify("token") == {"success": False}


# ─────────────────────────────────────────────────────────────────
# EmailService
# ─────────────────────────────────────────────────────────────────


class TestEmailService:
    def test_missing_provider_config_falls_back_to_console(self):
        assert EmailService(mode="resend").mode == "console"
        assert EmailService(mode="smtp").mode == "console"

    @pytest.mark.asyncio
    async def test_console_mode_succeeds(self):
        result = await EmailService(mode="console").send_verification_email(
            "ann@example.com", "http://shop.test/verify/abc", "Ann"
        )
        assert result["success"] is True
        assert result["mode"] == "console"

    @pytest.mark.asyncio
    async def test_resend_payload(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "msg_1"})

        service = EmailService(
            mode="resend",
            resend_api_key="re_key",
            from_email="shop@example.com",
            transport=httpx.MockTransport(handler),
        )

        result = await service.send_password_reset_email(
            "ann@example.com", "http://shop.test/password/reset/xyz", "Ann"
        )

        assert result == {"success": True, "mode": "resend", "messageId": "msg_1"}
        assert seen["auth"] == "Bearer re_key"
        assert seen["body"]["to"] == ["ann@example.com"]
        assert seen["body"]["from"] == "HelloStore <shop@example.com>"
        assert "http://shop.test/password/reset/xyz" in seen["body"]["text"]

    @pytest.mark.asyncio
    async def test_resend_error_is_reported(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(422, json={"message": "bad from"}))
        service = EmailService(mode="resend", resend_api_key="re_key", transport=transport)

        result = await service.send_verification_email("ann@example.com", "http://x/verify/a")

        assert result == {"success": False, "error": "bad from"}

    @pytest.mark.asyncio
    async def test_link_is_escaped_in_html(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "msg_1"})

        service = EmailService(mode="resend", resend_api_key="k", transport=httpx.MockTransport(handler))
        await service.send_verification_email("a@x.com", "http://x/verify/a", "<b>Ann</b>")

        assert "<b>Ann</b>" not in seen["body"]["html"]
        assert "&lt;b&gt;Ann&lt;/b&gt;" in seen["body"]["html"]

    @pytest.mark.asyncio
    async def test_smtp_failure_is_reported(self):
        service = EmailService(mode="smtp", smtp_host="smtp.example.com", smtp_port=587)

        with patch(
            "storefront.services.email.email_service.aiosmtplib.send",
            AsyncMock(side_effect=aiosmtplib.SMTPException("refused")),
        ) as send:
            result = await service.send_verification_email("ann@example.com", "http://x/verify/a")

        assert result["success"] is False
        assert send.call_args.kwargs["start_tls"] is True
        assert send.call_args.kwargs["use_tls"] is False

    @pytest.mark.asyncio
    async def test_smtp_sends_text_and_html_parts(self):
        service = EmailService(
            mode="smtp",
            smtp_host="smtp.example.com",
            from_email="shop@example.com",
            verification_expire_hours=2,
        )

        with patch(
            "storefront.services.email.email_service.aiosmtplib.send", AsyncMock()
        ) as send:
            result = await service.send_verification_email("ann@example.com", "http://x/verify/a", "Ann")

        assert result == {"success": True, "mode": "smtp"}
        message = send.call_args.args[0]
        assert message["To"] == "ann@example.com"
        assert message["From"] == "HelloStore <shop@example.com>"
        text = message.get_body(preferencelist=("plain",)).get_content()
        assert "Hi Ann," in text
        assert "expires in 2 hours" in text
        assert message.get_body(preferencelist=("html",)) is not None
        assert send.call_args.kwargs["hostname"] == "smtp.example.com"
        assert send.call_args.kwargs["use_tls"] is True

    @pytest.mark.asyncio
    async def test_each_email_quotes_its_own_link_lifetime(self):
        sent = []

        def handler(request):
            sent.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "msg_1"})

        service = EmailService(
            mode="resend",
            resend_api_key="k",
            verification_expire_hours=24,
            reset_expire_hours=3,
            transport=httpx.MockTransport(handler),
        )

        await service.send_verification_email("ann@example.com", "http://x/verify/a")
        await service.send_password_reset_email("ann@example.com", "http://x/password/reset/b")

        verify_text, reset_text = sent[0]["text"], sent[1]["text"]
        assert "24 hours" in verify_text
        assert "3 hours" in reset_text
        assert "24 hours" not in reset_text
