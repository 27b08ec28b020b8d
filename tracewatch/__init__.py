"""Incremental poller for ASP.NET Trace.axd request logs."""

__version__ = "0.1.0"
