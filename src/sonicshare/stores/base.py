"""Store protocols consumed by the upload coordinator."""

from typing import Protocol, runtime_checkable

from sonicshare.models import BlobNamespace, CatalogRecord


@runtime_checkable
class BlobStore(Protocol):
    """Content location service keyed by namespace and key."""

    def put(
        self,
        namespace: BlobNamespace,
        key: str,
        data: bytes,
        content_type: str | None = None,
    ) -> str:
        """Store a blob.

        Args:
            namespace: Which store to write to (audio or cover).
            key: Destination key within the namespace.
            data: Blob bytes.
            content_type: MIME type to attach, if known.

        Returns:
            A URL from which the blob can be retrieved.
        """
        ...

    def delete(self, namespace: BlobNamespace, key: str) -> None:
        """Delete a blob. Raises on failure; callers decide whether to log or propagate."""
        ...


@runtime_checkable
class MetadataStore(Protocol):
    """Relational store for catalog records."""

    def insert(self, record: CatalogRecord) -> CatalogRecord:
        """Insert a record and return it with its store-assigned id and timestamp."""
        ...
