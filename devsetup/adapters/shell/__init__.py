"""Shell-backed command runners."""
