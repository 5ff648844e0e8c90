"""Infrastructure adapters: SQLite storage and notification sinks."""
