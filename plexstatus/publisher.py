"""Keep one Discord message in a channel up to date with the latest report."""

import logging
from typing import Optional

import discord

from plexstatus.errors import PublishError
from plexstatus.message_store import MessageIdStore

# Discord rejects message content longer than this
MAX_MESSAGE_LENGTH = 2000


def truncate_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[:limit - 1] + '…'


class ChannelPublisher:
    """Edit the bot's status message in place, or replace it when it is buried.

    The id of the last message is the only state carried between ticks. It is
    loaded from the store once and saved again whenever a new message is sent.
    """

    def __init__(self, client: discord.Client, channel_id: int, store: MessageIdStore,
                 logger: Optional[logging.Logger] = None):
        self.client = client
        self.channel_id = channel_id
        self.store = store
        self.logger = logger or logging.getLogger(__name__)
        self.last_message_id: Optional[int] = store.load()

    async def _resolve_channel(self):
        """Return the target channel from cache, falling back to the API."""
        channel = self.client.get_channel(self.channel_id)
        if channel is not None:
            return channel
        try:
            return await self.client.fetch_channel(self.channel_id)
        except (discord.NotFound, discord.Forbidden) as e:
            raise PublishError(f'Channel {self.channel_id} not found. Ensure DISCORD_CHANNEL_ID is correct.') from e
        except discord.HTTPException as e:
            raise PublishError(f'Failed to fetch channel {self.channel_id}: {e}') from e

    async def _latest_message(self, channel) -> Optional[discord.Message]:
        async for message in channel.history(limit=1):
            return message
        return None

    async def _delete_old_message(self, channel, message_id: int) -> None:
        """Delete a previously published message. Missing messages count as deleted."""
        try:
            old_message = await channel.fetch_message(message_id)
            await old_message.delete()
            self.logger.debug(f'Deleted old status message {message_id}')
        except discord.NotFound:
            self.logger.debug(f'Old status message {message_id} is already gone')
        except (discord.Forbidden, discord.HTTPException) as e:
            self.logger.warning(f'Failed to delete old message {message_id}: {e}')

    async def reconcile_and_publish(self, text: str, prior_message_id: Optional[int]) -> int:
        """Publish text and return the id of the message now holding it.

        Edits the prior message when it is still the newest message in the
        channel and was written by this bot; otherwise deletes it (best effort)
        and sends a new message. A newest message from this bot with any other
        id is a status message whose id was lost (a send cancelled after
        Discord accepted it), so it is deleted as well.

        Raises:
            PublishError: If the channel cannot be resolved or read, or the
                edit/send call fails
        """
        content = truncate_message(text)
        if len(content) < len(text):
            self.logger.warning(f'Status message truncated from {len(text)} to {len(content)} characters')

        channel = await self._resolve_channel()
        bot_user = self.client.user

        try:
            latest = await self._latest_message(channel)
            latest_is_ours = (
                latest is not None
                and bot_user is not None
                and latest.author.id == bot_user.id
            )
            if latest_is_ours and prior_message_id is not None and latest.id == prior_message_id:
                await latest.edit(content=content)
                return latest.id

            if prior_message_id is not None:
                await self._delete_old_message(channel, prior_message_id)
            if latest_is_ours:
                self.logger.warning(f'Removing untracked status message {latest.id}')
                await self._delete_old_message(channel, latest.id)

            new_message = await channel.send(content)
        except discord.DiscordException as e:
            raise PublishError(f'Error updating Discord channel {self.channel_id}: {e}') from e

        self.logger.info(f'Posted new status message {new_message.id}')
        return new_message.id

    async def publish(self, text: str) -> int:
        """Publish text against the remembered message id and persist a new id."""
        message_id = await self.reconcile_and_publish(text, self.last_message_id)
        if message_id != self.last_message_id:
            self.last_message_id = message_id
            self.store.save(message_id)
        return message_id
