import logging
from pathlib import Path

from ..constants import ProjectType

logger = logging.getLogger(__name__)


def write_test_file(test_file_path: str, content: str) -> str:
    """Create parent directories, then write content, replacing any existing file."""
    logger.info(f"Writing test file: {test_file_path}")
    full_path = Path(test_file_path)
    try:
        full_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OSError(f"Failed to create test directory {full_path.parent}: {e}") from e
    try:
        full_path.write_text(content, encoding='utf-8')
    except OSError as e:
        raise OSError(f"Failed to write test file {full_path}: {e}") from e
    logger.info(f"Successfully wrote test file: {test_file_path} ({len(content)} chars)")
    return str(full_path)


def ensure_bootstrap_file(test_root_path: str, project_type: ProjectType) -> bool:
    """Write the shared bootstrap file for project_type if it is missing.

    Creation is exclusive (`open(..., "x")`), so an existing file is never
    replaced even if two writers get here at once. Returns True when this
    call created the file.
    """
    if not project_type.bootstrap_file:
        return False
    bootstrap = Path(test_root_path) / project_type.bootstrap_file
    try:
        bootstrap.parent.mkdir(parents=True, exist_ok=True)
        with open(bootstrap, "x", encoding="utf-8") as f:
            f.write(project_type.bootstrap_content)
    except FileExistsError:
        return False
    except OSError as e:
        raise OSError(f"Failed to create bootstrap file {bootstrap}: {e}") from e
    logger.info(f"Created bootstrap file: {bootstrap}")
    return True


class TestFileWriter:
    """Persists generated tests; the orchestrator's write collaborator."""

    __test__ = False

    def write(self, test_file_path: str, content: str) -> str:
        return write_test_file(test_file_path, content)

    def ensure_bootstrap(self, test_root_path: str, project_type: ProjectType) -> bool:
        return ensure_bootstrap_file(test_root_path, project_type)
