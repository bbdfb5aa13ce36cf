"""DuckDB journal storage."""
