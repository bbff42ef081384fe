"""Per-channel sequential order numbers and historical backfill."""
