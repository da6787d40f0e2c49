import asyncio
import logging
from pathlib import Path

from testgenie.core.config import get_settings
from ..constants import TREE_IGNORE_DIRS, MAX_TREE_LINES, MAX_FILES_PER_DIR

logger = logging.getLogger(__name__)


def get_file_tree(repo_path: str, max_depth: int = 6) -> str:
    tree_lines = []
    root = Path(repo_path)

    def walk(path: Path, prefix: str = "", depth: int = 0):
        if depth > max_depth:
            return
        try:
            entries = sorted(path.iterdir(), key=lambda e: (not e.is_dir(), e.name.lower()))
        except OSError:
            return

        dirs = [e for e in entries if e.is_dir() and e.name not in TREE_IGNORE_DIRS]
        files = [e for e in entries if e.is_file()]
        shown_files = files[:MAX_FILES_PER_DIR]

        for i, d in enumerate(dirs):
            last = i == len(dirs) - 1 and not files
            tree_lines.append(f"{prefix}{'└── ' if last else '├── '}{d.name}/")
            walk(d, prefix + ("    " if last else "│   "), depth + 1)

        for i, f in enumerate(shown_files):
            last = i == len(shown_files) - 1 and len(files) <= MAX_FILES_PER_DIR
            tree_lines.append(f"{prefix}{'└── ' if last else '├── '}{f.name}")
        if len(files) > MAX_FILES_PER_DIR:
            tree_lines.append(f"{prefix}└── ... ({len(files) - MAX_FILES_PER_DIR} more files)")

    walk(root)
    return "\n".join(tree_lines[:MAX_TREE_LINES])


class ProjectStructureProvider:
    """Supplies the textual directory tree used as prompt context."""

    def __init__(self, max_depth: int = None):
        self.max_depth = max_depth if max_depth is not None else get_settings().tree_max_depth

    async def snapshot(self, workspace_root: str) -> str:
        return await asyncio.to_thread(get_file_tree, workspace_root, self.max_depth)
