"""Lyrics lookup against the lyrics.ovh API."""

import logging
from urllib.parse import quote

import httpx

from sonicshare.config import Settings, get_settings
from sonicshare.errors import LyricsLookupError

logger = logging.getLogger(__name__)


class LyricsClient:
    """Fetch song lyrics by artist and title."""

    def __init__(self, settings: Settings | None = None, client: httpx.Client | None = None) -> None:
        s = settings or get_settings()
        self._base_url = s.lyrics_api_url.rstrip("/")
        self._client = client or httpx.Client(timeout=s.http_timeout_seconds)

    def fetch(self, artist: str, title: str) -> str | None:
        """Look up lyrics.

        Returns:
            The lyrics text, or None if the service has none for this song.

        Raises:
            LyricsLookupError: If the service cannot be reached or errors.
        """
        url = f"{self._base_url}/{quote(artist.strip(), safe='')}/{quote(title.strip(), safe='')}"
        try:
            response = self._client.get(url)
            if response.status_code == 404:
                logger.info(f"No lyrics found for '{title}' by {artist}")
                return None
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Lyrics lookup failed for '{title}' by {artist}: {e}")
            raise LyricsLookupError("Could not connect to lyrics service.") from e

        if not isinstance(data, dict):
            logger.warning(f"Unexpected lyrics payload for '{title}' by {artist}: {type(data).__name__}")
            raise LyricsLookupError("Lyrics service returned an unexpected response.")

        lyrics = data.get("lyrics")
        if not isinstance(lyrics, str):
            return None
        lyrics = lyrics.strip()
        return lyrics or None

    def close(self) -> None:
        self._client.close()
