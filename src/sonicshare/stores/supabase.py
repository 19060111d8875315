"""Supabase (PostgREST) metadata store using httpx."""

import logging
from dataclasses import replace

import httpx

from sonicshare.config import Settings, get_settings
from sonicshare.errors import ConfigurationError
from sonicshare.models import CatalogRecord

logger = logging.getLogger(__name__)


class SupabaseMetadataStore:
    """Insert catalog records into the Supabase `songs` table over REST."""

    def __init__(self, settings: Settings | None = None, client: httpx.Client | None = None) -> None:
        s = settings or get_settings()
        if not s.supabase_url or not s.supabase_key:
            raise ConfigurationError("Supabase metadata store requires SUPABASE_URL and SUPABASE_KEY")

        self._table = s.supabase_songs_table
        self._client = client or httpx.Client(
            base_url=f"{s.supabase_url.rstrip('/')}/rest/v1",
            timeout=s.http_timeout_seconds,
        )
        self._headers = {
            "apikey": s.supabase_key,
            "Authorization": f"Bearer {s.supabase_key}",
            "Prefer": "return=representation",
        }

    def insert(self, record: CatalogRecord) -> CatalogRecord:
        """Insert a record and return the row the database created.

        Once the database has accepted the insert this never raises: a
        response that cannot be mapped back falls back to `record` with
        whatever id the response carries, so a committed row is never
        reported as a failed insert.

        Raises:
            httpx.HTTPError: If the request fails or returns an error status.
        """
        try:
            response = self._client.post(
                f"/{self._table}",
                json=[record.to_row()],
                headers=self._headers,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to insert '{record.title}' into {self._table}: {e}")
            raise

        row = self._first_row(response)
        try:
            stored = CatalogRecord.from_row(row)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Could not map row returned by {self._table} ({e}); using submitted record")
            record_id = row.get("id")
            stored = replace(record, id=str(record_id) if record_id is not None else None)

        if row.get("created_at") and stored.created_at is None:
            logger.warning(f"Unreadable created_at {row['created_at']!r} for record {stored.id}")

        logger.info(f"Inserted catalog record {stored.id} ('{stored.title}' by {stored.artist})")
        return stored

    def _first_row(self, response: httpx.Response) -> dict:
        try:
            rows = response.json()
        except ValueError as e:
            logger.warning(f"Insert into {self._table} returned a non-JSON body: {e}")
            return {}
        if isinstance(rows, dict):
            return rows
        if isinstance(rows, list) and rows and isinstance(rows[0], dict):
            return rows[0]
        logger.warning(f"Insert into {self._table} returned no rows")
        return {}

    def close(self) -> None:
        self._client.close()
