"""Keep a Discord channel message in sync with Plex activity reported by Tautulli."""

__version__ = '1.0.0'
