"""Pytest configuration for property-based tests.

Property tests exercise pure functions only and need no fixtures.
"""
