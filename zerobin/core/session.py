"""
Explicit session object.
The login flow lives outside this package; callers construct a Session from
whatever their auth provider hands them and pass it to the API client.
"""
from __future__ import annotations

from pydantic import BaseModel

from zerobin.core.exceptions import UnauthorizedException
from zerobin.schemas.user import SessionUser, UserType


class Session(BaseModel):
    token: str | None = None
    user: SessionUser | None = None

    model_config = {"frozen": True}

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def user_type(self) -> UserType | None:
        return self.user.user_type if self.user else None

    def require_token(self) -> str:
        if not self.token:
            raise UnauthorizedException("Not authenticated. Please log in.")
        return self.token

    def require_user(self) -> SessionUser:
        if self.user is None:
            raise UnauthorizedException("Not authenticated. Please log in.")
        return self.user


ANONYMOUS = Session()
