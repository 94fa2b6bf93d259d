"""Integration tests for the vote tally API.

This package exercises the HTTP surface in-process, including:

- Vote submission and validation
- Full-tally and per-candidate stats queries
- Concurrent request handling
- Health, metrics and startup behaviour
"""
