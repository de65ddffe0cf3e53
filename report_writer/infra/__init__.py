"""Infrastructure: completion client, prompt store, error taxonomy."""
