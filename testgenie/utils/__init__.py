"""Utilities module."""

from .genai_client import (
    call_genai_async,
    build_prompt,
    get_genai_config,
    GenAIConfig
)
