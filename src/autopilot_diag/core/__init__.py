"""Host readers, records and CSV logs behind the diagnostics CLI."""
