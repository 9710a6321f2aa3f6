"""Notifier implementation posting engine status to a Discord text channel."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

import discord

from discord_playback_engine.application.interfaces.notifier import Notifier
from discord_playback_engine.domain.playback.value_objects import NotificationKind
from discord_playback_engine.domain.shared.messages import NotificationMessages

if TYPE_CHECKING:
    from discord_playback_engine.application.services.playback_models import Notification
    from discord_playback_engine.domain.playback.entities import Item

logger = logging.getLogger(__name__)

ChannelLookup = Callable[[int], "discord.abc.Messageable | None"]

EMBED_COLORS: dict[NotificationKind, discord.Color] = {
    NotificationKind.NOW_PLAYING: discord.Color.green(),
    NotificationKind.STREAM_RETRY: discord.Color.orange(),
    NotificationKind.INVALID_URL: discord.Color.red(),
    NotificationKind.PLAYBACK_FAILED: discord.Color.red(),
    NotificationKind.DECODER_MISCONFIGURED: discord.Color.dark_red(),
    NotificationKind.QUEUE_FINISHED: discord.Color.blurple(),
    NotificationKind.IDLE_DISCONNECT: discord.Color.light_grey(),
}


class TextChannelNotifier(Notifier):
    """Sends one embed per notification, falling back to plain text.

    ``channel_for`` maps a session id to the text channel to post in; returning
    None silently drops the notification.
    """

    def __init__(self, channel_for: ChannelLookup) -> None:
        self._channel_for = channel_for

    async def notify(self, notification: Notification) -> None:
        channel = self._channel_for(notification.session_id)
        if channel is None:
            return
        try:
            await channel.send(embed=self.build_embed(notification))
        except discord.HTTPException:
            await channel.send(notification.message)

    @staticmethod
    def build_embed(notification: Notification) -> discord.Embed:
        embed = discord.Embed(
            description=notification.message,
            color=EMBED_COLORS.get(notification.kind, discord.Color.default()),
        )
        item = notification.item
        if notification.kind is NotificationKind.NOW_PLAYING and item is not None:
            _add_item_fields(embed, item, notification.pending_count)
        return embed


def _add_item_fields(embed: discord.Embed, item: Item, pending_count: int) -> None:
    embed.add_field(
        name="⏱️ Duration",
        value="LIVE" if item.is_live else item.duration_formatted,
        inline=True,
    )
    embed.add_field(
        name="Source",
        value=NotificationMessages.SOURCE_LABELS.get(item.source.value, item.source.value),
        inline=True,
    )
    embed.add_field(name="Up next", value=str(pending_count), inline=True)
    if item.requested_by:
        embed.set_footer(text=f"Requested by {item.requested_by}")
