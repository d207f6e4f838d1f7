"""Infrastructure adapters: SQLite persistence, HTTP access and observability."""
