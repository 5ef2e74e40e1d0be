"""Poll Tautulli on a fixed interval and mirror the activity into Discord."""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional, Protocol, Sequence

import discord
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from plexstatus.config import Config
from plexstatus.errors import PublishError
from plexstatus.message_store import FileMessageIdStore
from plexstatus.models import ActivitySnapshot, Session
from plexstatus.publisher import ChannelPublisher
from plexstatus.renderer import render_report
from plexstatus.tautulli_client import TautulliClient

UPDATE_JOB_ID = 'update_status'


class ActivitySource(Protocol):
    async def get_activity(self) -> ActivitySnapshot:
        ...


class StatusSink(Protocol):
    async def publish(self, text: str) -> int:
        ...


class StatusUpdater:
    """Run one fetch -> render -> publish cycle at a time.

    A tick that starts while the previous one is still running is skipped
    rather than queued.
    """

    def __init__(
        self,
        source: ActivitySource,
        sink: StatusSink,
        timeout: float,
        logger: Optional[logging.Logger] = None,
        render: Callable[[Sequence[Session]], str] = render_report,
    ):
        self.source = source
        self.sink = sink
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self.render = render
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def _fetch(self) -> ActivitySnapshot:
        try:
            return await asyncio.wait_for(self.source.get_activity(), timeout=self.timeout)
        except asyncio.TimeoutError:
            self.logger.warning(f'Fetching activity timed out after {self.timeout}s')
            return ActivitySnapshot.failed('timeout')

    async def run_tick(self) -> bool:
        """Run one update cycle. Returns True when the message was published."""
        if self.busy:
            self.logger.warning('Previous update is still running, skipping this tick')
            return False

        async with self._lock:
            snapshot = await self._fetch()
            if not snapshot.ok:
                self.logger.info('Activity unavailable, publishing the idle report')

            text = self.render(snapshot.sessions)

            try:
                message_id = await asyncio.wait_for(self.sink.publish(text), timeout=self.timeout)
            except asyncio.TimeoutError:
                self.logger.warning(f'Publishing timed out after {self.timeout}s')
                return False
            except PublishError as e:
                self.logger.error(str(e))
                return False
            except OSError as e:
                self.logger.error(f'Failed to persist the status message id: {e}')
                return False

            self.logger.debug(f'Status message {message_id} updated with {len(snapshot.sessions)} sessions')
            return True


class StatusBotManager:
    """Owns the Discord client and the scheduler that drives StatusUpdater."""

    def __init__(self, config: Config, logger: logging.Logger):
        self.config = config
        self.logger = logger

        # Discord client
        self.bot = discord.Client(intents=discord.Intents.default())

        # Scheduler for the update job
        self.scheduler = AsyncIOScheduler()

        self.tautulli = TautulliClient(
            base_url=config.tautulli_url,
            api_key=config.tautulli_api_key,
            timeout=config.request_timeout,
            logger=logger,
        )
        store = FileMessageIdStore(config.last_message_file)
        self.publisher = ChannelPublisher(self.bot, config.discord_channel_id, store, logger=logger)
        self.updater = StatusUpdater(self.tautulli, self.publisher, config.request_timeout, logger=logger)

        self._setup_bot_events()

    def _setup_bot_events(self):
        """Setup Discord bot events."""

        @self.bot.event
        async def on_ready():
            self.logger.info(f'Logged in as {self.bot.user}')
            self.schedule_updates()

    def schedule_updates(self) -> None:
        """Register the interval job once; reconnects fire on_ready again."""
        if not self.scheduler.running:
            self.scheduler.start()
        if self.scheduler.get_job(UPDATE_JOB_ID) is not None:
            return

        self.scheduler.add_job(
            func=self.updater.run_tick,
            trigger='interval',
            seconds=self.config.poll_interval,
            id=UPDATE_JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.get_job(UPDATE_JOB_ID).modify(next_run_time=datetime.now())
        self.logger.info(f'Updating channel {self.config.discord_channel_id} every {self.config.poll_interval}s')

    async def start(self):
        """Log in and run until the client is closed."""
        try:
            await self.bot.start(self.config.discord_bot_token)
        finally:
            await self.close()

    async def close(self):
        """Stop the scheduler and close the Tautulli and Discord clients."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        await self.tautulli.aclose()
        if not self.bot.is_closed():
            await self.bot.close()
