"""Domain layer - storage, catalog, ingest and range logic."""
