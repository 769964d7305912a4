"""Issue rules, duplicate detection and vulnerability lookups for resolved nodes."""
