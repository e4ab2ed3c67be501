"""Shared helpers for blueprint_storage."""
