"""Signal scoring and trade planning."""
