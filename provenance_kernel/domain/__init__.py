"""Pure domain types for the provenance kernel: records, relation refs, snapshots, time."""
