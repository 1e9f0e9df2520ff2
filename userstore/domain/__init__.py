"""Pure domain rules (records, merge semantics, flush policies)."""
