"""Shared infrastructure — configuration, logging, GitHub URL helpers."""
