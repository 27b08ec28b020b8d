"""Command-line interface for the poller."""
