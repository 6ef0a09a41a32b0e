"""Command-line interface for the schedule engine."""
