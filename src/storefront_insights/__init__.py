"""Revenue series, rankings, inventory health and alert feeds for storefront snapshots."""

__version__ = "0.1.0"
