"""Deployment entrypoints for the retrieval engine."""
