"""location — Last-known-position tracking with a durable fallback."""
