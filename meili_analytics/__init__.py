"""Anonymous usage analytics for the Meilisearch HTTP server."""

__version__ = "0.21.0"
