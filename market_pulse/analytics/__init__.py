"""Per-symbol analytics snapshots consumed by the scoring engine."""
