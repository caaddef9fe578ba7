"""Anime search: cache-or-fetch flows and their HTTP endpoints."""
