"""HTTP surface of the exit pass service."""
