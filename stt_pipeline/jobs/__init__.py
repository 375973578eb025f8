"""Job records, the ingest coordinator, and the result harvester."""
