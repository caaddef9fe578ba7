"""Caching proxy for AniList anime metadata with DeepL-translated descriptions."""
