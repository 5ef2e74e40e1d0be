"""Exception types shared across the status bot."""


class PlexStatusError(Exception):
    """Base class for all plexstatus errors."""


class ConfigError(PlexStatusError):
    """Required configuration is missing or invalid."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__('Invalid configuration: ' + '; '.join(problems))


class FetchError(PlexStatusError):
    """The Tautulli activity API could not be reached or returned garbage."""


class RenderError(PlexStatusError, ValueError):
    """A session field holds a value that cannot be rendered."""


class PublishError(PlexStatusError):
    """A Discord channel operation failed."""
