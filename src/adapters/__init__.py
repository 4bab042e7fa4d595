"""I/O adapters (HTTP towards ejudge)."""
