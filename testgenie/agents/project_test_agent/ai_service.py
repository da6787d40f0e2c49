from typing import Optional

from testgenie.utils.genai_client import call_genai_async, build_prompt
from .constants import GENERATION_TASK_NAME


class AIService:
    """Project Test Agent AI Service using the centralized GenAI client."""

    async def generate(self, prompt: str, temperature: Optional[float] = None,
                       max_tokens: Optional[int] = None, task_name: str = GENERATION_TASK_NAME) -> str:
        """Call GenAI with continuation support."""
        return await call_genai_async(
            prompt=prompt,
            temperature=temperature,
            max_tokens=max_tokens,
            enable_continuation=True,
            max_continuations=3,
            task_name=task_name,
        )

    def build_prompt(self, system_message: str, user_message: str) -> str:
        """Build a formatted prompt."""
        return build_prompt(system_message, user_message)
