"""Data models shared across the adapter."""
