"""
Per-request access gate.

The gate is an ordered list of guards. Each guard either returns a
decision or ``None`` to defer to the next one; the first decision wins.
When no guard objects the request is allowed and the session's idle clock
restarts.

``AccessGate.evaluate`` is pure. ``AccessGateMiddleware`` loads the
session, asks the gate, and applies the one side effect the decision
calls for: renew ``lastActivity`` or destroy the session.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from storefront.middleware.session_cookie import SessionCookie
from storefront.models.session import SessionData
from storefront.services.auth.session_store import SessionStore

logger = logging.getLogger(__name__)


class GateOutcome(str, Enum):
    ALLOW = "allow"
    REDIRECT_TO_LOGIN = "redirect_to_login"


@dataclass(frozen=True)
class GateDecision:
    outcome: GateOutcome
    reason: Optional[str] = None
    renew_activity: bool = False
    destroy_session: bool = False

    @property
    def allowed(self) -> bool:
        return self.outcome is GateOutcome.ALLOW


Guard = Callable[[str, Optional[SessionData], datetime], Optional[GateDecision]]

PUBLIC_PATHS = frozenset({
    "/",
    "/login",
    "/register",
    "/logout",
    "/health",
    "/password/forgot",
})

PUBLIC_PREFIXES = (
    "/verify/",
    "/password/reset/",
    "/static/",
)

STATIC_EXTENSIONS = (
    ".css", ".js", ".png", ".jpg", ".jpeg", ".gif", ".svg",
    ".ico", ".webp", ".woff", ".woff2", ".map", ".txt",
)

LOGIN_EXPIRED_URL = "/login?expired=1"


def is_public_path(
    path: str,
    exact: Iterable[str] = PUBLIC_PATHS,
    prefixes: Sequence[str] = PUBLIC_PREFIXES,
    extensions: Sequence[str] = STATIC_EXTENSIONS,
) -> bool:
    if path in exact:
        return True
    if path.startswith(tuple(prefixes)):
        return True
    return path.lower().endswith(tuple(extensions))


def idle_duration(session: SessionData, now: datetime) -> timedelta:
    """Time since last activity; a session with no timestamp has no idle time."""
    last = session.last_activity
    if last is None:
        return timedelta(0)
    if last.tzinfo is None:
        last = last.replace(tzinfo=timezone.utc)
    return now - last


def public_path_guard(path: str, session: Optional[SessionData], now: datetime) -> Optional[GateDecision]:
    if is_public_path(path):
        return GateDecision(GateOutcome.ALLOW, reason="public")
    return None


def session_presence_guard(path: str, session: Optional[SessionData], now: datetime) -> Optional[GateDecision]:
    if session is None or not session.is_authenticated:
        return GateDecision(GateOutcome.REDIRECT_TO_LOGIN, reason="expired")
    return None


def make_idle_timeout_guard(threshold: timedelta) -> Guard:
    """Build a guard that rejects and destroys sessions idle past ``threshold``."""

    def idle_timeout_guard(path: str, session: Optional[SessionData], now: datetime) -> Optional[GateDecision]:
        if session is not None and idle_duration(session, now) > threshold:
            return GateDecision(
                GateOutcome.REDIRECT_TO_LOGIN,
                reason="expired",
                destroy_session=True,
            )
        return None

    return idle_timeout_guard


class AccessGate:
    """
    Decides ALLOW or REDIRECT_TO_LOGIN for a request path and session.
    """

    def __init__(self, idle_timeout: timedelta = timedelta(minutes=15), guards: Optional[List[Guard]] = None):
        """
        Initialize AccessGate.

        Args:
            idle_timeout: Maximum time between allowed requests
            guards: Override the default guard chain (public path,
                session presence, idle timeout)
        """
        self.idle_timeout = idle_timeout
        self.guards: List[Guard] = guards if guards is not None else [
            public_path_guard,
            session_presence_guard,
            make_idle_timeout_guard(idle_timeout),
        ]

    def evaluate(self, path: str, session: Optional[SessionData], now: datetime) -> GateDecision:
        for guard in self.guards:
            decision = guard(path, session, now)
            if decision is not None:
                return decision
        return GateDecision(GateOutcome.ALLOW, renew_activity=True)

    def is_idle_expired(self, session: SessionData, now: datetime) -> bool:
        return idle_duration(session, now) > self.idle_timeout


class AccessGateMiddleware(BaseHTTPMiddleware):
    """
    Applies the access gate to every request.

    Attaches:
        - request.state.session: SessionData or None
        - request.state.session_id: raw session id from the cookie or None
    """

    def __init__(
        self,
        app: ASGIApp,
        gate: AccessGate,
        cookie: SessionCookie,
        clock: Callable[[], datetime],
        session_store: Optional[SessionStore] = None,
    ):
        """
        Args:
            gate: Guard chain to apply
            cookie: Session cookie settings
            clock: Source of the current UTC time
            session_store: Fixed store; when None the store is taken from
                app.state.services, which is filled in at startup
        """
        super().__init__(app)
        self._gate = gate
        self._cookie = cookie
        self._clock = clock
        self._session_store = session_store

    def _store(self, request: Request) -> SessionStore:
        if self._session_store is not None:
            return self._session_store
        return request.app.state.services.session_store

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        sessions = self._store(request)
        now = self._clock()
        path = request.url.path
        session_id = self._cookie.read(request)
        session = await sessions.get(session_id) if session_id else None

        decision = self._gate.evaluate(path, session, now)

        if decision.destroy_session:
            try:
                await sessions.destroy(session_id)
            except Exception:
                # Still send the user to login rather than trap them
                logger.exception("Failed to destroy timed-out session")
            logger.info(f"Session expired after idle timeout on {path}")

        if not decision.allowed:
            response = RedirectResponse(LOGIN_EXPIRED_URL, status_code=303)
            if session_id:
                self._cookie.clear(response)
            return response

        if decision.renew_activity:
            await sessions.touch(session_id, now)
            session = session.model_copy(update={"last_activity": now})
        elif session is not None and self._gate.is_idle_expired(session, now):
            # Public page with a stale session: render as logged out
            session = None

        request.state.session = session
        request.state.session_id = session_id if session is not None else None

        response = await call_next(request)

        if decision.renew_activity and not self._cookie.was_set(response):
            self._cookie.set(response, session_id)

        return response
