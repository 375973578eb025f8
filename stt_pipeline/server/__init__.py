"""HTTP API for ingest, harvest, purge, and job inspection."""
