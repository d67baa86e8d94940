"""Shared configuration, schemas and exceptions."""
