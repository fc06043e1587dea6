"""
Session cookie settings.
"""

from dataclasses import dataclass
from typing import Optional

from starlette.requests import Request
from starlette.responses import Response


@dataclass(frozen=True)
class SessionCookie:
    """HttpOnly cookie carrying the raw session id."""

    name: str
    max_age: int
    secure: bool = False
    samesite: str = "lax"

    def read(self, request: Request) -> Optional[str]:
        return request.cookies.get(self.name) or None

    def set(self, response: Response, session_id: str) -> None:
        response.set_cookie(
            key=self.name,
            value=session_id,
            max_age=self.max_age,
            httponly=True,
            secure=self.secure,
            samesite=self.samesite,
            path="/",
        )

    def clear(self, response: Response) -> None:
        response.delete_cookie(
            key=self.name,
            path="/",
            httponly=True,
            secure=self.secure,
            samesite=self.samesite,
        )

    def was_set(self, response: Response) -> bool:
        """True if the handler already wrote (or cleared) this cookie."""
        prefix = f"{self.name}="
        return any(
            value.startswith(prefix)
            for key, value in response.headers.items()
            if key.lower() == "set-cookie"
        )
