"""Test fixtures for SEO researcher tests."""
