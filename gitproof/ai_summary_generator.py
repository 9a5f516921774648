"""AI-powered summary generation using OpenAI or Gemini"""

import json
import logging
import os
from typing import Dict, Any, Optional, Literal

# Optional imports for AI providers
try:
    from openai import OpenAI
    OPENAI_AVAILABLE = True
except ImportError:
    OPENAI_AVAILABLE = False
    OpenAI = None

try:
    import google.generativeai as genai
    GEMINI_AVAILABLE = True
except ImportError:
    GEMINI_AVAILABLE = False
    genai = None

from .cache_manager import CacheManager
from .errors import EnrichmentUnavailable

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "pt": "Portuguese",
    "it": "Italian",
    "ja": "Japanese",
    "zh": "Chinese",
    "ru": "Russian",
}


class NullSummarizer:
    """Summarizer used when no AI provider is configured"""

    provider = None

    def summarize(self, context: str, system_prompt: Optional[str] = None) -> str:
        raise EnrichmentUnavailable("No AI provider configured")


class AISummaryGenerator:
    """Generates natural-language text from a prompt using OpenAI or Gemini

    ``summarize`` is the only entry point; every failure is reported as
    ``EnrichmentUnavailable`` so callers can fall back to deterministic text.
    """

    def __init__(self, openai_token: Optional[str] = None, gemini_token: Optional[str] = None,
                 provider: Literal["openai", "gemini", "auto"] = "auto",
                 openai_model: str = "gpt-4o-mini", gemini_model: str = "gemini-1.5-flash",
                 timeout: float = 20, max_tokens: int = 600, language: str = "en",
                 cache_manager: Optional[CacheManager] = None):
        self.openai_token = openai_token or os.environ.get('OPENAI_API_KEY')
        self.gemini_token = gemini_token or os.environ.get('GEMINI_API_KEY')
        self.openai_model = openai_model
        self.gemini_model = gemini_model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.language = language.lower()
        self.cache_manager = cache_manager
        self.provider = self._select_provider(provider)

        self.openai_client = None
        self.gemini_client = None

        if self.provider == "openai":
            if not OPENAI_AVAILABLE:
                logger.warning("OpenAI package not installed; summaries will use default text")
                self.provider = None
            else:
                self.openai_client = OpenAI(api_key=self.openai_token, timeout=timeout)
        elif self.provider == "gemini":
            if not GEMINI_AVAILABLE:
                logger.warning("google-generativeai package not installed; summaries will use default text")
                self.provider = None
            else:
                genai.configure(api_key=self.gemini_token)
                self.gemini_client = genai.GenerativeModel(gemini_model)

        logger.debug("AI provider: %s", self.provider or "none")

    def _select_provider(self, provider: str) -> Optional[str]:
        """Pick the requested provider if it has a token, else whichever does"""
        if provider == "openai" and self.openai_token:
            return "openai"
        if provider == "gemini" and self.gemini_token:
            return "gemini"
        # Both available: prefer OpenAI
        if self.openai_token:
            return "openai"
        if self.gemini_token:
            return "gemini"
        return None

    @property
    def model(self) -> Optional[str]:
        if self.provider == "openai":
            return self.openai_model
        if self.provider == "gemini":
            return self.gemini_model
        return None

    def summarize(self, context: str, system_prompt: Optional[str] = None) -> str:
        """Return generated text for ``context``; raises EnrichmentUnavailable"""
        if not self.provider:
            raise EnrichmentUnavailable("No AI provider available. Provide OpenAI or Gemini token.")

        prompt = f"{self._get_language_instruction()}\n{context}"
        cache_key = None
        if self.cache_manager:
            cache_key = self.cache_manager.request_key(prompt, system_prompt, self.provider, self.model)
            cached = self.cache_manager.lookup(cache_key)
            if cached:
                return cached

        try:
            if self.provider == "openai":
                response = self._call_openai(prompt, system_prompt)
            else:
                response = self._call_gemini(prompt, system_prompt)
        except Exception as e:
            # SDK errors (timeouts, auth, quota) do not share a base class
            raise EnrichmentUnavailable(f"AI API error ({self.provider}): {e}") from e

        if not response:
            raise EnrichmentUnavailable(f"AI API returned no text ({self.provider})")

        if cache_key:
            self.cache_manager.store(cache_key, response, provider=self.provider, model=self.model)
        return response

    def _call_openai(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Call OpenAI API"""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = self.openai_client.chat.completions.create(
            model=self.openai_model,
            messages=messages,
            max_tokens=self.max_tokens,
            temperature=0.7,
            response_format={"type": "json_object"},
        )
        return (response.choices[0].message.content or "").strip()

    def _call_gemini(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Call Gemini API"""
        full_prompt = prompt
        if system_prompt:
            full_prompt = f"{system_prompt}\n\n{prompt}"

        response = self.gemini_client.generate_content(
            full_prompt,
            generation_config={
                "response_mime_type": "application/json",
                "max_output_tokens": self.max_tokens,
            },
            request_options={"timeout": self.timeout},
        )
        return (response.text or "").strip()

    def _get_language_instruction(self) -> str:
        """Get language instruction for prompts"""
        lang_name = LANGUAGE_NAMES.get(self.language, self.language.upper())
        return f"IMPORTANT: Write all text in {lang_name} ({self.language})."


def parse_json_object(text: str) -> Dict[str, Any]:
    """Decode a JSON object from a model response, tolerating code fences"""
    body = text.strip()
    for fence in ("```json", "```"):
        if fence in body:
            parts = body.split(fence, 1)
            body = parts[1].split("```")[0].strip()
            break
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise EnrichmentUnavailable(f"Malformed AI response: {e}") from e
    if not isinstance(data, dict):
        raise EnrichmentUnavailable("AI response is not a JSON object")
    return data


def build_summarizer(ai_config: Dict[str, Any], openai_token: Optional[str] = None,
                     gemini_token: Optional[str] = None):
    """Create the summarizer described by the ``ai`` config section"""
    provider = ai_config.get("provider", "auto")
    if provider == "none":
        return NullSummarizer()

    cache_manager = None
    if ai_config.get("use_cache", True):
        try:
            cache_manager = CacheManager(
                cache_dir=ai_config.get("cache_dir"),
                ttl_days=int(ai_config.get("cache_ttl_days", 7)),
            )
            pruned = cache_manager.prune()
            if pruned:
                logger.debug("Removed %d stale cache entries", pruned)
        except OSError as e:
            logger.warning("AI cache disabled: %s", e)

    generator = AISummaryGenerator(
        openai_token=openai_token,
        gemini_token=gemini_token,
        provider=provider,
        openai_model=ai_config.get("openai_model", "gpt-4o-mini"),
        gemini_model=ai_config.get("gemini_model", "gemini-1.5-flash"),
        timeout=float(ai_config.get("timeout_sec", 20)),
        max_tokens=int(ai_config.get("max_tokens", 600)),
        language=ai_config.get("language", "en"),
        cache_manager=cache_manager,
    )
    if not generator.provider:
        return NullSummarizer()
    return generator
