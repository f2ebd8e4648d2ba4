"""Discover, run and report Pester tests for editor test explorers."""
