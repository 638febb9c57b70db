"""User and auth endpoints built on top of a shared NetworkManager."""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from tamimah_network import Envelope, NetworkError, NetworkManager, initialize_network

API_PREFIX = "/api"
AUTH_PREFIX = "/api/auth"


class User(BaseModel):
    id: int
    name: str
    email: str
    avatar: str | None = None
    created_at: datetime


def _changes(**fields: Any) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


class UserApi:
    def __init__(self, manager: NetworkManager) -> None:
        self._manager = manager

    async def list_users(self, *, page: int = 1, per_page: int = 10, search: str | None = None) -> Envelope[list[User]]:
        return await self._manager.get(
            f"{API_PREFIX}/users",
            query={"page": page, "per_page": per_page, "search": search},
            decode=list[User],
        )

    async def get_user(self, user_id: int) -> Envelope[User]:
        return await self._manager.get(f"{API_PREFIX}/users/{user_id}", decode=User)

    async def create_user(self, *, name: str, email: str, avatar: str | None = None) -> Envelope[User]:
        payload = _changes(name=name, email=email, avatar=avatar)
        return await self._manager.post(f"{API_PREFIX}/users", payload, decode=User)

    async def update_user(
        self,
        user_id: int,
        *,
        name: str | None = None,
        email: str | None = None,
        avatar: str | None = None,
    ) -> Envelope[User]:
        payload = _changes(name=name, email=email, avatar=avatar)
        return await self._manager.put(f"{API_PREFIX}/users/{user_id}", payload, decode=User)

    async def delete_user(self, user_id: int) -> Envelope[bool]:
        return await self._manager.delete(
            f"{API_PREFIX}/users/{user_id}",
            decode=lambda raw: bool(raw.get("success", False)),
        )

    async def upload_avatar(self, user_id: int, path: str | Path) -> Envelope[str]:
        return await self._manager.upload(
            f"{API_PREFIX}/users/{user_id}/avatar",
            file=path,
            field_name="avatar",
            decode=lambda raw: raw.get("avatar_url", ""),
        )

    async def user_stats(self, user_id: int) -> Envelope[dict[str, Any]]:
        return await self._manager.get(f"{API_PREFIX}/users/{user_id}/stats", decode=dict)


class AuthApi:
    """Login flows that keep the manager's bearer token in sync."""

    def __init__(self, manager: NetworkManager) -> None:
        self._manager = manager

    async def login(self, *, email: str, password: str) -> Envelope[dict[str, Any]]:
        envelope = await self._manager.post(
            f"{AUTH_PREFIX}/login",
            {"email": email, "password": password},
            decode=dict,
        )
        self._adopt_token(envelope)
        return envelope

    async def refresh(self) -> Envelope[dict[str, Any]]:
        envelope = await self._manager.post(f"{AUTH_PREFIX}/refresh", decode=dict)
        self._adopt_token(envelope)
        return envelope

    async def logout(self) -> Envelope[Any]:
        try:
            return await self._manager.post(f"{AUTH_PREFIX}/logout")
        finally:
            self._manager.update_auth_token(None)

    async def profile(self) -> Envelope[User]:
        return await self._manager.get(f"{AUTH_PREFIX}/profile", decode=User)

    def _adopt_token(self, envelope: Envelope[dict[str, Any]]) -> None:
        token = envelope.data.get("token") if envelope.is_success and envelope.data else None
        if token:
            self._manager.update_auth_token(str(token))


async def run_demo() -> None:
    logging.basicConfig(level=logging.DEBUG)
    manager = initialize_network(base_url=os.getenv("TAMIMAH_API_BASE", "https://api.example.com"))
    users = UserApi(manager)
    auth = AuthApi(manager)
    try:
        login = await auth.login(
            email=os.getenv("TAMIMAH_DEMO_EMAIL", "demo@example.com"),
            password=os.getenv("TAMIMAH_DEMO_PASSWORD", "demo"),
        )
        print(f"login: {login.error_message}")

        listing = await users.list_users(page=1, per_page=5)
        for user in listing.data_or_none or []:
            print(f"{user.id}: {user.name} <{user.email}>")
    except NetworkError as error:
        print(f"request failed: {error.user_message} ({error.kind.value})")
    finally:
        await manager.dispose()


if __name__ == "__main__":
    asyncio.run(run_demo())
