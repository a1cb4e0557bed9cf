"""Command-line interface for scenario_runner."""
