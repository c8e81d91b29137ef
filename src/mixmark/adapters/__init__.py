"""Adapters bridging the core scanner with external tools and markup engines."""
