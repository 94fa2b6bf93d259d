"""Unit tests for the vote store."""
