"""Minimal async client for the Tautulli v2 API using httpx.

Only the endpoint this bot needs is wrapped:
  - GET /api/v2?cmd=get_activity   (currently active sessions)
"""

import logging
from typing import Optional

import httpx

from plexstatus.errors import FetchError
from plexstatus.models import ActivitySnapshot, Session


class TautulliClient:
    """Fetch the current Plex activity from Tautulli."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        retries: int = 2,
        timeout: float = 10.0,
        logger: Optional[logging.Logger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.retries = retries
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------
    # HTTP helper
    # ------------------------------------------------------------------

    def _get_client(self) -> httpx.AsyncClient:
        # One client for the bot's lifetime, closed by aclose()
        if self._client is None or self._client.is_closed:
            transport = self._transport or httpx.AsyncHTTPTransport(retries=self.retries)
            self._client = httpx.AsyncClient(transport=transport, timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _command(self, cmd: str, **params) -> dict:
        """Call an API command and return the unwrapped response.data payload.

        Raises:
            FetchError: On transport errors, non-2xx status, invalid JSON,
                an unsuccessful result or an unexpected envelope
        """
        query = {'apikey': self.api_key, 'cmd': cmd, **params}
        try:
            resp = await self._get_client().get(f'{self.base_url}/api/v2', params=query)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPStatusError as e:
            raise FetchError(f'Tautulli returned HTTP {e.response.status_code} for {cmd}') from e
        except httpx.HTTPError as e:
            raise FetchError(f'Cannot reach Tautulli at {self.base_url}: {e}') from e
        except ValueError as e:
            raise FetchError(f'Tautulli returned invalid JSON for {cmd}: {e}') from e

        response = body.get('response') if isinstance(body, dict) else None
        if not isinstance(response, dict):
            raise FetchError(f'Unexpected response format for {cmd}: {body!r}')
        if response.get('result', 'success') != 'success':
            raise FetchError(f'Tautulli {cmd} failed: {response.get("message")}')

        data = response.get('data')
        if not isinstance(data, dict):
            raise FetchError(f'Unexpected response format for {cmd}: {body!r}')
        return data

    # ------------------------------------------------------------------
    # Activity
    # ------------------------------------------------------------------

    async def get_activity(self) -> ActivitySnapshot:
        """Fetch active sessions. Failures come back as a failed snapshot, never raised."""
        try:
            data = await self._command('get_activity')
            raw_sessions = data.get('sessions')
            if not isinstance(raw_sessions, list):
                raise FetchError(f'Unexpected sessions payload: {raw_sessions!r}')
        except FetchError as e:
            self.logger.error(f'Error fetching streaming data: {e}')
            return ActivitySnapshot.failed(str(e))

        sessions = [Session.from_api(raw) for raw in raw_sessions if isinstance(raw, dict)]
        self.logger.debug(f'Tautulli reports {len(sessions)} active sessions')
        return ActivitySnapshot(sessions=sessions)

    async def get_active_sessions(self) -> list[Session]:
        """Return active sessions, or an empty list when the fetch failed."""
        snapshot = await self.get_activity()
        return snapshot.sessions
