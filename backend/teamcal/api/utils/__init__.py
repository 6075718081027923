"""Shared helpers for API routes."""
