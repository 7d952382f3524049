"""User service."""

from __future__ import annotations

from ..models.common import User
from ._helpers import Service


class UserService(Service):
    async def me(self) -> User:
        data = await self._client.get("/user/me")
        return User.from_api(data or {})

    async def validate_token(self) -> None:
        await self._client.validate_token()
