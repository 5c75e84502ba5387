"""Tesla endpoint modules (internal)."""
