# Snapshot sources
# Each source turns one storefront export format into a validated Snapshot

from .storefront_client import InMemorySource, StorefrontExportClient, build_snapshot

__all__ = ["InMemorySource", "StorefrontExportClient", "build_snapshot"]
