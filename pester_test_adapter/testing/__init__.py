"""Factories and payload helpers for tests."""
