"""Shared infrastructure: config, storage, logging, CLI."""
