"""Outbound clients for the AniList and DeepL APIs."""
from anime_proxy.clients.anilist import AniListClient
from anime_proxy.clients.deepl import DeepLTranslator, TranslationResult

__all__ = ["AniListClient", "DeepLTranslator", "TranslationResult"]
