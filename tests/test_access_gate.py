"""Unit tests for the access gate guard chain and the role gate."""

import pytest
from datetime import datetime, timedelta, timezone

from common.utils.exceptions import ForbiddenException, UnauthorizedException
from storefront.middleware.access_gate import (
    AccessGate,
    GateDecision,
    GateOutcome,
    is_public_path,
)
from storefront.middleware.role_gate import check_admin, check_session
from storefront.models.session import SessionData, SessionIdentity
from storefront.models.user import Role


T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _session(role=Role.CUSTOMER, last_activity=T0):
    identity = SessionIdentity(
        id="65f000000000000000000001",
        external_id="c0ffee",
        first_name="Ann",
        last_name="Lee",
        email="ann@example.com",
        role=role,
        is_email_verified=True,
    )
    return SessionData(identity=identity, last_activity=last_activity, created_at=T0)


@pytest.fixture
def gate():
    return AccessGate(idle_timeout=timedelta(minutes=15))


# ─────────────────────────────────────────────────────────────────
# Allow-list
# ─────────────────────────────────────────────────────────────────


class TestPublicPaths:
    @pytest.mark.parametrize("path", [
        "/", "/login", "/register", "/logout", "/health", "/password/forgot",
        "/verify/abc", "/password/reset/abc", "/static/style.css", "/favicon.ico",
    ])
    def test_public(self, path):
        assert is_public_path(path) is True

    @pytest.mark.parametrize("path", [
        "/dashboard", "/profile", "/admin", "/list", "/edit/1", "/api/session", "/verify",
    ])
    def test_protected(self, path):
        assert is_public_path(path) is False

    def test_public_path_allowed_without_renewal(self, gate):
        decision = gate.evaluate("/login", _session(), T0 + timedelta(minutes=1))

        assert decision.allowed
        assert decision.renew_activity is False
        assert decision.destroy_session is False

    def test_public_path_allowed_with_stale_session(self, gate):
        decision = gate.evaluate("/", _session(), T0 + timedelta(hours=3))

        assert decision.allowed
        assert decision.destroy_session is False


# ─────────────────────────────────────────────────────────────────
# Session presence and idle timeout
# ─────────────────────────────────────────────────────────────────


class TestProtectedPaths:
    def test_no_session_redirects(self, gate):
        decision = gate.evaluate("/dashboard", None, T0)

        assert decision.outcome is GateOutcome.REDIRECT_TO_LOGIN
        assert decision.reason == "expired"
        assert decision.destroy_session is False

    def test_session_without_identity_redirects(self, gate):
        decision = gate.evaluate("/dashboard", SessionData(last_activity=T0), T0)
        assert decision.outcome is GateOutcome.REDIRECT_TO_LOGIN

    def test_active_session_allowed_and_renewed(self, gate):
        decision = gate.evaluate("/dashboard", _session(), T0 + timedelta(minutes=14))

        assert decision.allowed
        assert decision.renew_activity is True
        assert decision.destroy_session is False

    def test_exactly_at_threshold_is_still_allowed(self, gate):
        decision = gate.evaluate("/dashboard", _session(), T0 + timedelta(minutes=15))
        assert decision.allowed

    def test_sixteen_minutes_idle_is_rejected_and_destroyed(self, gate):
        decision = gate.evaluate("/dashboard", _session(), T0 + timedelta(minutes=16))

        assert decision.outcome is GateOutcome.REDIRECT_TO_LOGIN
        assert decision.reason == "expired"
        assert decision.destroy_session is True
        assert decision.renew_activity is False

    @pytest.mark.parametrize("path", ["/admin", "/api/session", "/profile", "/anything/else"])
    def test_idle_rejection_applies_to_every_protected_path(self, gate, path):
        decision = gate.evaluate(path, _session(role=Role.ADMIN), T0 + timedelta(minutes=16))
        assert decision.destroy_session is True

    def test_missing_last_activity_counts_as_zero_idle(self, gate):
        decision = gate.evaluate("/dashboard", _session(last_activity=None), T0 + timedelta(days=1))
        assert decision.allowed

    def test_naive_last_activity_read_as_utc(self, gate):
        naive = T0.replace(tzinfo=None)
        decision = gate.evaluate("/dashboard", _session(last_activity=naive), T0 + timedelta(minutes=16))
        assert decision.destroy_session is True

    def test_never_both_renew_and_destroy(self, gate):
        for minutes in (0, 5, 15, 16, 60):
            decision = gate.evaluate("/dashboard", _session(), T0 + timedelta(minutes=minutes))
            assert not (decision.renew_activity and decision.destroy_session)


class TestCustomGuards:
    def test_first_decision_wins(self):
        deny = GateDecision(GateOutcome.REDIRECT_TO_LOGIN, reason="maintenance")
        gate = AccessGate(guards=[
            lambda path, session, now: deny,
            lambda path, session, now: GateDecision(GateOutcome.ALLOW),
        ])
        assert gate.evaluate("/", None, T0) is deny

    def test_no_guard_objects_means_allow_and_renew(self):
        decision = AccessGate(guards=[]).evaluate("/dashboard", None, T0)
        assert decision.allowed
        assert decision.renew_activity is True


# ─────────────────────────────────────────────────────────────────
# Role gate
# ─────────────────────────────────────────────────────────────────


class TestRoleGate:
    def test_no_session_is_unauthenticated(self):
        with pytest.raises(UnauthorizedException) as exc_info:
            check_admin(None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.code == "UNAUTHENTICATED"

    def test_customer_is_forbidden_not_unauthenticated(self):
        with pytest.raises(ForbiddenException) as exc_info:
            check_admin(_session(role=Role.CUSTOMER))

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Access denied. Admin privileges required."

    def test_admin_passes(self):
        identity = check_admin(_session(role=Role.ADMIN))
        assert identity.is_admin

    def test_check_session_returns_identity(self):
        assert check_session(_session()).external_id == "c0ffee"
