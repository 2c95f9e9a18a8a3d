"""HTTP API for the betting ledger."""
