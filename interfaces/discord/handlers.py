from __future__ import annotations

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from application.services import reconcile, resolve_link
from domain.repositories import AccountRepository
from infrastructure.discord.role_gateway import DiscordRoleGateway
from interfaces.discord.messages import (
    GENERIC_ERROR,
    render_link_result,
    render_reconcile_result,
)

LOGGER = logging.getLogger(__name__)


def create_discord_bot(
    account_repo: AccountRepository,
    role_id: Optional[int],
) -> commands.Bot:
    """
    Configure and return a Discord bot exposing `/link` and `/resync`.

    This module contains only Discord-specific concerns: reading the
    interaction, building the role gateway for its guild and rendering
    the application outcome back to the user.
    """

    intents = discord.Intents.default()
    intents.guilds = True

    bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

    @bot.event
    async def on_ready():
        LOGGER.info("Discord bot logged in as %s (id=%s)", bot.user, bot.user.id)
        try:
            synced = await bot.tree.sync()
            LOGGER.info("Synced %d application commands", len(synced))
        except discord.HTTPException:
            LOGGER.exception("Failed to sync application commands")

    @bot.tree.command(name="link", description="Link your Minecraft account")
    @app_commands.describe(code="Link code shown in game")
    async def link_cmd(interaction: discord.Interaction, code: str):
        # Defer first: the link may commit before a slow role grant returns.
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            result = await resolve_link(
                str(interaction.user.id),
                code,
                account_repo,
                DiscordRoleGateway(interaction.guild, role_id),
            )
            text = render_link_result(result)
        except Exception:
            LOGGER.exception("Error during link for %s", interaction.user.id)
            text = GENERIC_ERROR
        await interaction.followup.send(text, ephemeral=True)

    @bot.tree.command(name="resync", description="Resync your linked account role")
    async def resync_cmd(interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            result = await reconcile(
                str(interaction.user.id),
                account_repo,
                DiscordRoleGateway(interaction.guild, role_id),
            )
            text = render_reconcile_result(result)
        except Exception:
            LOGGER.exception("Error during resync for %s", interaction.user.id)
            text = GENERIC_ERROR
        await interaction.followup.send(text, ephemeral=True)

    return bot
