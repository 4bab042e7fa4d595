"""Core: domain, configuration and orchestration (no network I/O)."""
