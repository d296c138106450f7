"""Infrastructure: cache backend, persistence, extension registry and SQL-backed services."""
