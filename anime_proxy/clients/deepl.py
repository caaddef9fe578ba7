"""Best-effort DeepL translation adapter."""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from anime_proxy.config import TRANSLATION_FALLBACK

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranslationResult:
    """Translated text, or the fallback sentinel when `ok` is False."""
    text: str
    ok: bool = True

    @classmethod
    def fallback(cls) -> "TranslationResult":
        return cls(text=TRANSLATION_FALLBACK, ok=False)


class DeepLTranslator:
    """Translate text through the DeepL REST API.

    Failures of any kind (transport, non-2xx status, unexpected body) are
    logged and turned into `TranslationResult.fallback()`; nothing raises
    across this boundary.
    """

    def __init__(self, client: httpx.AsyncClient, api_url: str, api_key: str):
        self.client = client
        self.api_url = api_url
        self.api_key = api_key

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def translate(self, text: str, target_lang: str) -> TranslationResult:
        """Translate `text` into `target_lang`; empty text is sent unchanged."""
        try:
            response = await self.client.post(
                self.api_url,
                headers={"Authorization": f"DeepL-Auth-Key {self.api_key}"},
                data={"text": text, "target_lang": target_lang},
            )
            response.raise_for_status()
            translations = response.json().get("translations") or []
            translated = translations[0].get("text") if translations else None
        except (httpx.HTTPError, ValueError, AttributeError, TypeError, KeyError, IndexError) as e:
            logger.warning(f"Translation to {target_lang} failed: {e}")
            return TranslationResult.fallback()

        if not isinstance(translated, str) or not translated:
            logger.warning(f"Translation to {target_lang} returned no text")
            return TranslationResult.fallback()
        return TranslationResult(text=translated)
