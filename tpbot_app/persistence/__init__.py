"""Durable storage for the run configuration."""
