"""External test runners."""
