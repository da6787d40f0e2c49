from pathlib import Path
from typing import List

from ..constants import ProjectType
from ..models import GenerationResult


def build_generation_report(
    project_type: ProjectType,
    workspace_root: str,
    results: List[GenerationResult],
    cancelled: bool = False,
) -> str:
    succeeded = [r for r in results if r.succeeded]
    failed = [r for r in results if not r.succeeded]

    response = "## Project Test Generation Complete\n\n" if not cancelled else "## Project Test Generation Cancelled\n\n"
    response += f"**Workspace:** {Path(workspace_root).name}\n"
    response += f"**Language:** {project_type.display_name} | **Framework:** {project_type.framework}\n"
    response += f"**{len(succeeded)}/{len(results)} test files generated**\n\n"

    if succeeded:
        response += f"### ✅ Test Files Created: {len(succeeded)}\n\n"
        response += "| Source File | Test File |\n"
        response += "|---|---|\n"
        for r in succeeded:
            response += f"| `{r.source_path}` | `{_relative(r.test_file_path, workspace_root)}` |\n"
        response += "\n"

    if failed:
        response += f"### ⚠️ Could Not Generate Tests: {len(failed)} files\n\n"
        for r in failed:
            response += f"- `{r.source_path}`: {r.error or 'Unknown error'}\n"
        response += "\n"

    if succeeded:
        response += "---\n\nWould you like to run the generated tests now?"

    return response


def _relative(path: str, workspace_root: str) -> str:
    try:
        return Path(path).relative_to(workspace_root).as_posix()
    except ValueError:
        return path
