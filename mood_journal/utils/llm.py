import logging
from functools import lru_cache
from typing import Dict, List, Optional

from mood_journal.config import Settings, get_settings

logger = logging.getLogger("llm")
# Don't add handler - use the root logger's handler to avoid duplicates
logger.setLevel(logging.INFO)


def _require_env(settings: Settings) -> None:
    if settings.llm_provider.lower() != "groq":
        logger.error("LLM_PROVIDER must be 'groq'")
        raise RuntimeError("LLM_PROVIDER must be 'groq'")
    if not settings.groq_api_key:
        logger.error("GROQ_API_KEY is not configured")
        raise RuntimeError("GROQ_API_KEY is not configured")


@lru_cache(maxsize=8)
def _groq_client(api_key: str):
    from groq import Groq

    logger.debug("Groq client initialized.")
    return Groq(api_key=api_key)


def _get_groq_client(settings: Settings):
    # One client (and connection pool) per API key, reused across requests
    return _groq_client(settings.groq_api_key)


def chat_completion(
    messages: List[Dict[str, str]],
    *,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> Optional[str]:
    """
    Minimal wrapper around Groq chat completion.
    Returns the first choice's content, which may be empty or None when the
    model produced nothing. Raises on transport, auth or rate-limit errors and
    when the response carries no choices at all.
    """
    settings = settings or get_settings()
    _require_env(settings)
    client = _get_groq_client(settings)
    kwargs = {
        "model": settings.groq_model,
        "messages": messages,
        "temperature": settings.chat_temperature if temperature is None else temperature,
        "max_tokens": settings.chat_max_tokens if max_tokens is None else max_tokens,
    }
    logger.debug("Sending chat request to Groq: model=%s, messages=%d", settings.groq_model, len(messages))
    resp = client.chat.completions.create(**kwargs)
    if not resp or not getattr(resp, "choices", None):
        logger.error("Groq returned no choices")
        raise RuntimeError("Groq returned no choices")
    content = resp.choices[0].message.content
    logger.debug("Groq response received.")
    return content
