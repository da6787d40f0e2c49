import os
import logging
from pathlib import Path
from typing import Dict, Optional, Sequence

from ..constants import ProjectType, VCS_DIRS

logger = logging.getLogger(__name__)


def count_source_files(workspace_roots: Sequence[str]) -> Dict[ProjectType, int]:
    counts = {project_type: 0 for project_type in ProjectType}
    for root in workspace_roots:
        if not Path(root).is_dir():
            logger.warning(f"Skipping missing workspace root: {root}")
            continue
        for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
            dirnames[:] = [d for d in dirnames if d not in VCS_DIRS]
            for name in filenames:
                for project_type in ProjectType:
                    if name.endswith(project_type.source_ext):
                        counts[project_type] += 1
    return counts


def detect_project_type(workspace_roots: Sequence[str]) -> Optional[ProjectType]:
    """Return the ecosystem with the most source files, or None.

    Ties go to the earlier ProjectType member (python, then java, then nodejs).
    """
    if not workspace_roots:
        return None

    counts = count_source_files(workspace_roots)
    logger.info("Source file counts: " + ", ".join(f"{t.key}={n}" for t, n in counts.items()))

    best: Optional[ProjectType] = None
    for project_type in ProjectType:
        if counts[project_type] > 0 and (best is None or counts[project_type] > counts[best]):
            best = project_type
    return best


def _log_walk_error(error: OSError):
    logger.warning(f"Cannot read directory {error.filename}: {error}")
