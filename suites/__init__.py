"""Example test functions for ``browser-harness --suite``."""
