from __future__ import annotations

from dataclasses import dataclass

import structlog
from fastapi import Depends, Request

from app.errors import ApiError


logger = structlog.get_logger(__name__)

DEFAULT_USER_ID = "citizen1"
USER_HEADER = "x-user-id"


@dataclass(frozen=True)
class User:
    user_id: str
    username: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


MOCK_USERS: dict[str, User] = {
    "netrunnerX": User(user_id="netrunnerX", username="netrunnerX", role="admin"),
    "reliefAdmin": User(user_id="reliefAdmin", username="reliefAdmin", role="admin"),
    "citizen1": User(user_id="citizen1", username="citizen1", role="contributor"),
    "volunteer1": User(user_id="volunteer1", username="volunteer1", role="contributor"),
}


def current_user(request: Request) -> User:
    user_id = request.headers.get(USER_HEADER) or DEFAULT_USER_ID
    user = MOCK_USERS.get(user_id)
    if user is None:
        logger.info("authentication failed", user_id=user_id)
        raise ApiError(401, "Authentication failed", "Unknown user")
    return user


def require_role(role: str):
    def dependency(user: User = Depends(current_user)) -> User:
        if user.role != role:
            raise ApiError(
                403,
                "Insufficient permissions",
                f"Required role: {role}",
                required_role=role,
            )
        return user

    return dependency
