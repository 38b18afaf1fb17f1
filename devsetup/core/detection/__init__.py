"""Read-only probes of the host environment."""
