"""Entry-point adapters (CLI, web)."""
