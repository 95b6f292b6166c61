"""身份/会话 — Supabase Auth 封装，当前用户以 UserContext 显式传递。"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from supabase import Client

logger = logging.getLogger(__name__)

ADULT_AGE = 18


class NotAuthenticatedError(RuntimeError):
    pass


class AgeRequirementError(ValueError):
    pass


@dataclass(frozen=True)
class UserContext:
    user_id: str
    email: str = ""

    @classmethod
    def from_user(cls, user: Any) -> UserContext:
        return cls(user_id=str(user.id), email=user.email or "")


@dataclass(frozen=True)
class SessionChange:
    """一次会话变更通知。user 为 None 表示已登出。"""

    event: str
    user: UserContext | None


class AuthService:
    def __init__(self, client: Client, email_redirect_to: str = "") -> None:
        self._client = client
        self.email_redirect_to = email_redirect_to

    def sign_up(
        self, email: str, password: str, full_name: str, is_adult: bool
    ) -> UserContext | None:
        """注册。未确认已满 18 岁时不联系身份服务。"""
        if not is_adult:
            raise AgeRequirementError("You must be 18 or older to use this service.")
        options: dict[str, Any] = {"data": {"full_name": full_name}}
        if self.email_redirect_to:
            options["email_redirect_to"] = self.email_redirect_to
        resp = self._client.auth.sign_up(
            {"email": email, "password": password, "options": options}
        )
        logger.info("Signed up %s", email)
        return UserContext.from_user(resp.user) if resp.user else None

    def sign_in(self, email: str, password: str) -> UserContext:
        resp = self._client.auth.sign_in_with_password({"email": email, "password": password})
        logger.info("Signed in %s", email)
        return UserContext.from_user(resp.user)

    def sign_out(self) -> None:
        self._client.auth.sign_out()

    def current_user(self) -> UserContext | None:
        resp = self._client.auth.get_user()
        if resp is None or resp.user is None:
            return None
        return UserContext.from_user(resp.user)

    def require_user(self) -> UserContext:
        user = self.current_user()
        if user is None:
            raise NotAuthenticatedError("Not authenticated")
        return user

    def subscribe(self, listener: Callable[[SessionChange], None]) -> Any:
        """订阅会话变更，返回带 unsubscribe() 的订阅对象。"""

        def _on_change(event: Any, session: Any) -> None:
            user = UserContext.from_user(session.user) if session and session.user else None
            listener(SessionChange(event=str(event), user=user))

        return self._client.auth.on_auth_state_change(_on_change)
