"""Per-function Lambda entrypoints (one API Gateway integration per module)."""
