"""Protocol interfaces the core depends on."""
