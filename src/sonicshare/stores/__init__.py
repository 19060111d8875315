"""Blob and metadata store adapters."""

from sonicshare.config import Settings, get_settings
from sonicshare.models import BlobNamespace
from sonicshare.stores.base import BlobStore, MetadataStore
from sonicshare.stores.memory import InMemoryBlobStore, InMemoryMetadataStore
from sonicshare.stores.r2 import R2BlobStore
from sonicshare.stores.supabase import SupabaseMetadataStore


def build_stores(settings: Settings | None = None) -> tuple[BlobStore, MetadataStore]:
    """Create the blob and metadata stores selected by STORAGE_BACKEND."""
    s = settings or get_settings()
    if s.storage_backend == "memory":
        return InMemoryBlobStore(), InMemoryMetadataStore()
    return R2BlobStore(s), SupabaseMetadataStore(s)


__all__ = [
    "BlobNamespace",
    "BlobStore",
    "InMemoryBlobStore",
    "InMemoryMetadataStore",
    "MetadataStore",
    "R2BlobStore",
    "SupabaseMetadataStore",
    "build_stores",
]
