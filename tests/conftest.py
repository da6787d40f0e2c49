"""
Shared test fixtures and fake collaborators.
"""

import asyncio
import threading
from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest

from testgenie.agents.project_test_agent.constants import ProjectType
from testgenie.agents.project_test_agent.models import GenerationTask, SourceFile


class FakeGenerationService:
    """Returns fenced test code; raises for sources listed in fail_on."""

    def __init__(self, fail_on: Optional[Set[str]] = None, response: str = None):
        self.fail_on = fail_on or set()
        self.response = response
        self.calls: List[GenerationTask] = []
        self.test_paths: List[str] = []

    async def generate_tests(self, task: GenerationTask, test_file_path: str) -> str:
        self.calls.append(task)
        self.test_paths.append(test_file_path)
        if task.source_file.relative_path in self.fail_on:
            raise RuntimeError(f"generation failed for {task.source_file.relative_path}")
        if self.response is not None:
            return self.response
        return f"def test_generated():\n    assert '{task.source_file.relative_path}'\n"


class SlowGenerationService(FakeGenerationService):
    """Sleeps inside each call and records how many calls overlapped."""

    def __init__(self, delay: float = 0.1):
        super().__init__()
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    async def generate_tests(self, task: GenerationTask, test_file_path: str) -> str:
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            return await super().generate_tests(task, test_file_path)
        finally:
            with self._lock:
                self.in_flight -= 1


class FakeAIService:
    """Stands in for AIService: records prompts, returns a canned answer."""

    def __init__(self, response: str = "# Test Analysis\n\nAll good.\n"):
        self.response = response
        self.prompts: List[str] = []
        self.task_names: List[str] = []

    async def generate(self, prompt: str, temperature=None, max_tokens=None, task_name: str = "") -> str:
        self.prompts.append(prompt)
        self.task_names.append(task_name)
        return self.response

    def build_prompt(self, system_message: str, user_message: str) -> str:
        return f"{system_message}\n\n{user_message}"


class FakeStructureProvider:
    def __init__(self, tree: str = "├── service/\n│   └── billing.py", error: Exception = None):
        self.tree = tree
        self.error = error
        self.calls: List[str] = []

    async def snapshot(self, workspace_root: str) -> str:
        self.calls.append(workspace_root)
        if self.error:
            raise self.error
        return self.tree


class RecordingProgress:
    def __init__(self):
        self.messages: List[str] = []

    def report(self, message: str, increment: float = 0.0) -> None:
        self.messages.append(message)


def write_files(root: Path, files: Dict[str, str]) -> Path:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


def make_source(root: Path, rel: str, content: str = "", project_type: ProjectType = ProjectType.PYTHON) -> SourceFile:
    return SourceFile(
        absolute_path=str(root / rel),
        relative_path=rel,
        workspace_root=str(root),
        language=project_type,
        content=content,
    )


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Return an empty workspace root."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def python_workspace(workspace: Path) -> Path:
    """Two service modules plus a pre-existing test."""
    return write_files(workspace, {
        "service/billing.py": "from service.pricing import price\n\ndef bill(x):\n    return price(x)\n",
        "service/pricing.py": "def price(x):\n    return x * 2\n",
        "tests/test_billing.py": "def test_bill():\n    pass\n",
    })
