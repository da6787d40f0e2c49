import os
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from testgenie.core.config import get_settings
from testgenie.utils.exceptions import SourceFileError
from ..constants import ProjectType, VCS_DIRS, DEFAULT_EXCLUDE_PATTERNS
from ..models import ExclusionRuleSet, SourceFile
from ..utils.pattern_matcher import is_test_file_strict, matches_directory_pattern

logger = logging.getLogger(__name__)


def build_exclusion_rules() -> ExclusionRuleSet:
    settings = get_settings()
    return ExclusionRuleSet(
        patterns=tuple(DEFAULT_EXCLUDE_PATTERNS) + tuple(settings.extra_exclude_patterns),
        inclusion_keywords=tuple(settings.inclusion_keywords),
    )


def discover_source_files(
    project_type: ProjectType,
    workspace_roots: Sequence[str],
    rules: Optional[ExclusionRuleSet] = None,
    max_file_size: Optional[int] = None,
) -> List[SourceFile]:
    """Enumerate files worth generating tests for.

    A file qualifies when it has the project's extension, no exclusion
    pattern matches its relative path, it is not itself named like a test,
    and its relative path contains one of the inclusion keywords.
    """
    rules = rules or build_exclusion_rules()
    max_file_size = max_file_size or get_settings().max_file_size
    files: List[SourceFile] = []

    for root in workspace_roots:
        root_path = Path(root).resolve()
        if not root_path.is_dir():
            logger.warning(f"Skipping missing workspace root: {root}")
            continue

        logger.info(f"Searching for *{project_type.source_ext} files in {root_path}")
        total = 0
        for dirpath, dirnames, filenames in os.walk(root_path):
            dirnames[:] = sorted(
                d for d in dirnames
                if d not in VCS_DIRS and not matches_directory_pattern(d, rules.patterns)
            )
            for name in sorted(filenames):
                if not name.endswith(project_type.source_ext):
                    continue
                total += 1
                fp = Path(dirpath) / name
                rel = fp.relative_to(root_path).as_posix()
                if rules.is_excluded(rel) or is_test_file_strict(name):
                    logger.debug(f"Excluded: {rel}")
                    continue
                if not rules.has_inclusion_keyword(rel):
                    logger.debug(f"Not relevant: {rel}")
                    continue
                source = _read_source_file(fp, rel, root_path, project_type, max_file_size)
                if source is not None:
                    files.append(source)

        logger.info(f"Found {total} *{project_type.source_ext} files under {root_path}, {len(files)} relevant so far")

    logger.info(f"Discovered {len(files)} relevant source files")
    return files


def load_source_file(file_path: str, workspace_roots: Sequence[str],
                     max_file_size: Optional[int] = None) -> SourceFile:
    """Load one explicitly requested file, bypassing the discovery filters.

    The file must exist, sit inside one of the workspace roots and carry a
    supported extension. The first root containing it wins.
    """
    fp = Path(file_path).expanduser()
    if not fp.is_absolute() and workspace_roots:
        fp = Path(workspace_roots[0]) / fp
    fp = fp.resolve()
    if not fp.is_file():
        raise SourceFileError(f"File not found: {file_path}")

    project_type = ProjectType.from_path(fp.name)
    if project_type is None:
        raise SourceFileError("Unsupported file type for test generation.")

    for root in workspace_roots:
        root_path = Path(root).resolve()
        try:
            rel = fp.relative_to(root_path).as_posix()
        except ValueError:
            continue
        source = _read_source_file(fp, rel, root_path, project_type,
                                   max_file_size or get_settings().max_file_size)
        if source is None:
            raise SourceFileError(f"Could not read {rel}")
        logger.info(f"Loaded {rel} for single-file generation ({project_type.display_name})")
        return source

    raise SourceFileError(f"File is outside the workspace: {file_path}")


def _read_source_file(fp: Path, rel: str, root_path: Path, project_type: ProjectType,
                      max_file_size: int) -> Optional[SourceFile]:
    try:
        text = fp.read_text(encoding='utf-8', errors='ignore')
    except OSError as e:
        logger.warning(f"Could not read {rel}: {e}")
        return None
    if len(text) > max_file_size:
        text = text[:max_file_size] + "\n... (truncated)"
    return SourceFile(
        absolute_path=str(fp),
        relative_path=rel,
        workspace_root=str(root_path),
        language=project_type,
        content=text,
    )
