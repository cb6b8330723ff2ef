"""Coaster Stats - RCDB collection clients and scrape pipeline pieces."""
