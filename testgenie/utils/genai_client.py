"""Centralized utility for GenAI completion calls.

This module provides the single async entry point used to reach the text
completion endpoint, with automatic continuation for long responses and
consistent error handling.

Model selection is driven by llm_config.yml via the `task_name` parameter.
Pass a task name (e.g. "project_test_generation") to automatically use the
model, temperature and max_tokens defined in the YAML config.

Usage:
    response = await call_genai_async(prompt, task_name="project_test_generation")

    prompt = build_prompt(system_message="You are a helpful assistant",
                          user_message="What is Python?")
"""

from typing import Dict, Any, Optional

import httpx

from testgenie.core.config import get_settings
from testgenie.core.logging import log_debug
from testgenie.utils.exceptions import AIServiceError


class GenAIConfig:
    """Configuration for the GenAI completion endpoint."""

    def __init__(self):
        settings = get_settings()
        self.api_key = settings.genai_api_key
        self.bearer_token = settings.genai_bearer_token
        self.endpoint_url = settings.genai_endpoint_url
        self.default_model = settings.genai_default_model
        self.default_timeout = settings.genai_timeout

    def validate(self):
        """Validate that required credentials are present."""
        if not self.api_key:
            raise AIServiceError(
                "GenAI API key not configured. Please provide "
                "TESTGENIE_GENAI_API_KEY in your environment or .env file."
            )
        if not self.endpoint_url:
            raise AIServiceError(
                "GenAI endpoint not configured. Please provide "
                "TESTGENIE_GENAI_ENDPOINT_URL in your environment or .env file."
            )


def get_genai_config() -> GenAIConfig:
    return GenAIConfig()


def _resolve_task_config(task_name: Optional[str] = None):
    """Resolve model/temperature/max_tokens from llm_config.yml for a task."""
    if not task_name:
        return None
    from testgenie.core.llm_config import get_llm_config
    return get_llm_config().get(task_name)


def _build_request_body(
    prompt: str,
    model: str,
    temperature: float = 0.2,
    max_tokens: int = 6096,
) -> Dict[str, Any]:
    """Build the request body for the completion endpoint."""
    return {
        "model": model,
        "prompt": prompt,
        "temperature": temperature,
        "max_tokens": max_tokens,
        "top_p": 1,
        "presence_penalty": 0,
        "stream": False,
        "seed": 25,
        "stop": None,
    }


def _build_headers(config: GenAIConfig) -> Dict[str, str]:
    """Build headers for the completion request."""
    headers = {
        "accept": "application/json",
        "API-Key": config.api_key,
        "Content-Type": "application/json",
    }

    if config.bearer_token:
        headers["Authorization"] = f"Bearer {config.bearer_token}"

    return headers


def extract_text_from_response(result: Dict[str, Any]) -> str:
    """Extract text content from API response."""
    if "choices" in result and len(result["choices"]) > 0:
        choice = result["choices"][0]
        if "message" in choice and "content" in choice["message"]:
            return choice["message"]["content"]
        if "text" in choice:
            return choice["text"]
    if "text" in result:
        return result["text"]
    if "content" in result:
        return result["content"]

    raise AIServiceError("Unexpected response format from GenAI API")


def get_finish_reason(result: Dict[str, Any]) -> Optional[str]:
    """Get finish reason from API response."""
    if "choices" in result and len(result["choices"]) > 0:
        return result["choices"][0].get("finish_reason", "stop")
    return "stop"


async def call_genai_async(
    prompt: str,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
    model: Optional[str] = None,
    timeout: Optional[int] = None,
    enable_continuation: bool = False,
    max_continuations: int = 3,
    task_name: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Make an async call to the GenAI completion endpoint.

    Args:
        prompt: The full assembled prompt
        temperature: Sampling temperature (0.0-1.0). None = use config/defaults
        max_tokens: Maximum tokens in response. None = use config/defaults
        model: Model to use. None = resolved from llm_config.yml
        timeout: Request timeout in seconds. None = use config/defaults
        enable_continuation: Whether to handle response continuation
        max_continuations: Maximum number of continuations to attempt
        task_name: Key in llm_config.yml to auto-resolve model/temp/tokens
        client: Optional pre-built client, mostly for tests

    Returns:
        str: The LLM response text

    Raises:
        AIServiceError: If credentials are not configured or API returns error
    """
    config = get_genai_config()
    config.validate()

    task_cfg = _resolve_task_config(task_name)
    if task_cfg:
        model = model or task_cfg.model
        temperature = temperature if temperature is not None else task_cfg.temperature
        max_tokens = max_tokens if max_tokens is not None else task_cfg.max_tokens
        timeout = timeout if timeout is not None else task_cfg.timeout

    temperature = temperature if temperature is not None else 0.2
    max_tokens = max_tokens if max_tokens is not None else 6096
    resolved_model = model or config.default_model
    log_debug(
        f"[async] task={task_name or 'adhoc'} model={resolved_model} "
        f"temp={temperature} max_tokens={max_tokens}",
        "genai",
    )

    request_body = _build_request_body(prompt, resolved_model, temperature, max_tokens)
    headers = _build_headers(config)
    timeout_value = timeout or config.default_timeout

    accumulated_text = ""
    attempts = max_continuations + 1 if enable_continuation else 1

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=timeout_value)

    try:
        for attempt in range(attempts):
            if attempt > 0:
                request_body["prompt"] = (
                    f"{prompt}\n\n"
                    f"[CONTINUATION] The previous response was cut off. Here is what was generated so far:\n"
                    f"---\n{accumulated_text[-2000:]}\n---\n"
                    f"Please continue from where you left off. Do not repeat what was already generated."
                )

            try:
                response = await client.post(config.endpoint_url, json=request_body, headers=headers)
            except httpx.HTTPError as e:
                raise AIServiceError(f"GenAI API request failed: {e}") from e

            if response.status_code != 200:
                raise AIServiceError(
                    f"GenAI API Error: {response.status_code} - {response.text}"
                )

            result = response.json()
            accumulated_text += extract_text_from_response(result)

            if not enable_continuation or get_finish_reason(result) != "length":
                break
    finally:
        if owns_client:
            await client.aclose()

    return accumulated_text


def build_prompt(system_message: str, user_message: str) -> str:
    """
    Build a formatted prompt with system and user messages.

    Args:
        system_message: The system instruction
        user_message: The user's message

    Returns:
        str: Formatted prompt
    """
    return f"System: {system_message}\n\nUser: {user_message}"
