from __future__ import annotations

import asyncio
from typing import Optional

import aiohttp
import discord

from domain.errors import RoleGatewayError, RoleUnavailableError
from domain.repositories import RoleGateway

# Everything discord.py lets through when the API answers badly or not at all.
_PLATFORM_ERRORS = (
    discord.HTTPException,
    aiohttp.ClientError,
    OSError,
    asyncio.TimeoutError,
)


class DiscordRoleGateway(RoleGateway):
    """
    `RoleGateway` backed by a single Discord guild and role.

    Built per interaction from the guild the command was used in, so a
    command invoked outside a guild (DMs) simply has no resolvable role.
    """

    def __init__(self, guild: Optional[discord.Guild], role_id: Optional[int]) -> None:
        self._guild = guild
        self._role_id = role_id

    async def _resolve_role(self) -> discord.Role:
        if self._guild is None or self._role_id is None:
            raise RoleUnavailableError("No guild or role configured")

        role = self._guild.get_role(self._role_id)
        if role is not None:
            return role

        # Not cached yet: ask the API before giving up.
        try:
            roles = await self._guild.fetch_roles()
        except _PLATFORM_ERRORS as exc:
            raise RoleGatewayError(f"Could not fetch roles: {exc!r}") from exc

        for candidate in roles:
            if candidate.id == self._role_id:
                return candidate
        raise RoleUnavailableError(
            f"Role {self._role_id} does not exist in guild {self._guild.id}"
        )

    async def _resolve_member(self, identity: str) -> discord.Member:
        try:
            member_id = int(identity)
        except ValueError as exc:
            raise RoleGatewayError(f"Not a Discord user ID: {identity!r}") from exc

        member = self._guild.get_member(member_id)
        if member is not None:
            return member
        try:
            return await self._guild.fetch_member(member_id)
        except _PLATFORM_ERRORS as exc:
            raise RoleGatewayError(f"Could not fetch member {identity}: {exc!r}") from exc

    async def has_role(self, identity: str) -> bool:
        role = await self._resolve_role()
        member = await self._resolve_member(identity)
        return member.get_role(role.id) is not None

    async def grant_role(self, identity: str) -> None:
        role = await self._resolve_role()
        member = await self._resolve_member(identity)
        if member.get_role(role.id) is not None:
            return
        try:
            await member.add_roles(role, reason="Linked game account")
        except _PLATFORM_ERRORS as exc:
            raise RoleGatewayError(f"Could not add role to {identity}: {exc!r}") from exc
