# tests/__init__.py
"""Test package for scenario_runner."""
