"""Discord gateway client: forwards forum events to SupportBridge and lists the forum's active threads."""
import logging
from typing import Optional

import discord

from bridge.services.support_sync import SupportBridge

logger = logging.getLogger(__name__)


def build_client(bridge: SupportBridge) -> discord.Client:
    intents = discord.Intents.default()
    intents.guilds = True
    intents.guild_messages = True
    intents.message_content = True
    client = discord.Client(intents=intents)

    @client.event
    async def on_ready():
        logger.info("Discord bot is ready as %s (guilds: %s)", client.user, len(client.guilds))

    @client.event
    async def on_thread_create(thread: discord.Thread):
        await bridge.on_thread_created(thread)

    @client.event
    async def on_message(message: discord.Message):
        if not isinstance(message.channel, discord.Thread):
            return
        await bridge.on_message_created(message)

    @client.event
    async def on_error(event: str, *args, **kwargs):
        logger.exception("Unhandled error in Discord event %s", event)

    return client


class ForumThreads:
    """Active threads of the support forum, fetched through the gateway client's REST session."""

    def __init__(self, client: discord.Client, forum_id: Optional[int]):
        self.client = client
        self.forum_id = forum_id

    async def __call__(self) -> list[discord.Thread]:
        if self.forum_id is None:
            return []
        forum = self.client.get_channel(self.forum_id) or await self.client.fetch_channel(self.forum_id)
        # Guild.active_threads returns every unarchived thread of the guild
        threads = await forum.guild.active_threads()
        return [t for t in threads if t.parent_id == self.forum_id]
