"""In-process store implementations for local runs and tests."""

import logging
import uuid
from datetime import datetime, timezone

from sonicshare.models import BlobNamespace, CatalogRecord

logger = logging.getLogger(__name__)


class InMemoryBlobStore:
    """Blob store backed by a dict per namespace."""

    def __init__(self, base_url: str = "memory://") -> None:
        self._base_url = base_url
        self._blobs: dict[BlobNamespace, dict[str, bytes]] = {ns: {} for ns in BlobNamespace}

    def put(
        self,
        namespace: BlobNamespace,
        key: str,
        data: bytes,
        content_type: str | None = None,
    ) -> str:
        self._blobs[namespace][key] = bytes(data)
        logger.debug(f"Stored {len(data)} bytes -> {namespace.value}/{key}")
        return self.url_for(namespace, key)

    def delete(self, namespace: BlobNamespace, key: str) -> None:
        if self._blobs[namespace].pop(key, None) is None:
            raise KeyError(f"No {namespace.value} blob with key '{key}'")

    def url_for(self, namespace: BlobNamespace, key: str) -> str:
        return f"{self._base_url}{namespace.value}/{key}"

    def get(self, namespace: BlobNamespace, key: str) -> bytes | None:
        return self._blobs[namespace].get(key)

    def keys(self, namespace: BlobNamespace) -> list[str]:
        return list(self._blobs[namespace])

    def close(self) -> None:
        pass


class InMemoryMetadataStore:
    """Metadata store holding records in insertion order."""

    def __init__(self) -> None:
        self._records: list[CatalogRecord] = []

    def insert(self, record: CatalogRecord) -> CatalogRecord:
        stored = record.with_identity(str(uuid.uuid4()), datetime.now(timezone.utc))
        self._records.append(stored)
        return stored

    @property
    def records(self) -> list[CatalogRecord]:
        return list(self._records)

    def close(self) -> None:
        pass
