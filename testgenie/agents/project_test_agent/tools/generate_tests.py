import re
import logging
from pathlib import Path
from typing import List, Tuple

from testgenie.prompts import prompt_loader
from ..ai_service import AIService
from ..constants import MAX_IMPORTED_FILE_CHARS
from ..models import GenerationTask

logger = logging.getLogger(__name__)

PROMPT_FILE = "project_test_agent.yml"

_LEADING_FENCE = re.compile(r'^\s*```[\w+-]*[ \t]*\r?\n')
_TRAILING_FENCE = re.compile(r'(?:^|\r?\n)```\s*$')


def clean_generated_code(response: str) -> str:
    """Drop a wrapping code fence (with optional language tag) if present."""
    cleaned = _LEADING_FENCE.sub('', response, count=1)
    cleaned = _TRAILING_FENCE.sub('', cleaned, count=1)
    return cleaned


def format_imported_files(imported_context: List[Tuple[str, str]]) -> str:
    return "\n\n".join(
        f"# Content of imported file: {specifier}\n{content[:MAX_IMPORTED_FILE_CHARS]}"
        for specifier, content in imported_context
    )


def build_generation_prompt(task: GenerationTask, test_file_path: str, ai_service: AIService = None) -> str:
    source = task.source_file
    language = source.language
    imports_section = ""
    if task.imported_context:
        imports_section = prompt_loader.get_prompt(PROMPT_FILE, "imports_section").format(
            imported_files=format_imported_files(task.imported_context),
        )

    workspace_root = Path(source.workspace_root)
    try:
        relative_test_path = Path(test_file_path).relative_to(workspace_root).as_posix()
    except ValueError:
        relative_test_path = test_file_path

    user_message = prompt_loader.get_prompt(PROMPT_FILE, "generate_unit_tests").format(
        language=language.display_name,
        framework=language.framework,
        file_path=source.relative_path,
        test_file_path=relative_test_path,
        project_structure=task.project_structure or "(unavailable)",
        code=source.content,
        imports_section=imports_section,
    )
    system_message = prompt_loader.get_prompt(PROMPT_FILE, "system")
    return (ai_service or AIService()).build_prompt(system_message.strip(), user_message)


class GenerationService:
    """Turns a GenerationTask into cleaned test source via the AI service."""

    def __init__(self, ai_service: AIService = None):
        self.ai_service = ai_service or AIService()

    async def generate_tests(self, task: GenerationTask, test_file_path: str) -> str:
        prompt = build_generation_prompt(task, test_file_path, self.ai_service)
        logger.info(f"Requesting tests for {task.source_file.relative_path} (prompt length: {len(prompt)} chars)")
        response = await self.ai_service.generate(prompt)
        test_code = clean_generated_code(response or "")
        if not test_code.strip():
            raise ValueError("Generation service returned an empty response")
        return test_code
