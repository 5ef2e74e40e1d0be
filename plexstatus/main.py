import sys
import asyncio
import logging

import discord

from plexstatus.config import Config
from plexstatus.errors import ConfigError
from plexstatus.status_bot import StatusBotManager

LOG_FORMAT = '%(asctime)s [%(name)s] %(levelname)s: %(message)s'


class LoggerManager:
    """Bot, discord.py and APScheduler loggers writing to one stderr stream."""

    def __init__(self, config: Config):
        self.config = config
        self.bot = logging.getLogger('plexstatus')
        self.discord = logging.getLogger('discord')
        self.job = logging.getLogger('apscheduler')
        self._configure()

    def _configure(self) -> None:
        # httpx and httpcore log through the root logger
        logging.basicConfig(level=logging.WARNING)

        stream = logging.StreamHandler()
        stream.setFormatter(logging.Formatter(LOG_FORMAT))

        levels = {
            self.bot: self.config.log_level,
            self.discord: self.config.log_level_discord,
            self.job: self.config.log_level_scheduler,
        }
        for logger, level in levels.items():
            logger.handlers = [stream]
            logger.setLevel(level)
            logger.propagate = False


def main() -> None:
    """Main entry point."""
    try:
        config = Config()
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logging.getLogger('plexstatus').error(str(e))
        sys.exit(1)

    loggers = LoggerManager(config)
    loggers.bot.info(f'Polling Tautulli at {config.tautulli_url} every {config.poll_interval}s')
    manager = StatusBotManager(config, loggers.bot)

    try:
        asyncio.run(manager.start())
    except discord.LoginFailure as e:
        loggers.bot.error(f'Discord login failed: {e}')
        sys.exit(1)
    except KeyboardInterrupt:
        loggers.bot.info('Shutting down')


if __name__ == '__main__':
    main()
