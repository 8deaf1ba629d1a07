"""Shared LLM client for request handlers"""

import logging
from typing import Optional

from workshop_registry.backends.llm_client import LLMClient
from workshop_registry.config import config

logger = logging.getLogger(__name__)

_llm_client: Optional[LLMClient] = None


def get_llm_client() -> Optional[LLMClient]:
    """
    Return the process-wide LLM client, creating it on first use.

    Returns None when no Anthropic key is configured; callers then use
    their static fallbacks (confirmation text, email templates).
    """
    global _llm_client
    if _llm_client is None:
        if not config.get("anthropic_api_key"):
            logger.warning("ANTHROPIC_API_KEY is not set; AI-written text is disabled")
            return None
        _llm_client = LLMClient(config)
        logger.info(f"Initialized LLM client for model {_llm_client.model}")
    return _llm_client
