import logging
import sys
from enum import Enum
from typing import Optional, Tuple

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] [ProjectTestAgent] %(message)s',
        datefmt='%I:%M:%S %p'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False


PYTHON_BOOTSTRAP_CONTENT = '''import os
import sys

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

# Import common test fixtures and configurations
import pytest
from unittest.mock import Mock, patch
'''


class ProjectType(Enum):
    """Supported ecosystems with their test conventions.

    Declaration order is also the tie-break priority used by detection.
    """

    PYTHON = (
        "python", "Python", ".py", "_test.py", "pytest", True,
        "conftest.py", PYTHON_BOOTSTRAP_CONTENT,
        (("export PYTHONPATH={prod_path}:$PYTHONPATH", None), ("python -m pytest {test_root}/ -v", None)),
    )
    JAVA = (
        "java", "Java", ".java", "Test.java", "JUnit 5", False,
        None, None,
        (("mvn -q dependency:resolve", "target"), ("mvn test", None)),
    )
    NODEJS = (
        "nodejs", "Node.js", ".js", ".test.js", "Jest", False,
        None, None,
        (("npm install", "node_modules"), ("npx jest {test_root}/", None)),
    )

    # run_commands: (command template, path whose presence skips the step)
    def __init__(self, key: str, display_name: str, source_ext: str, test_suffix: str,
                 framework: str, resolves_imports: bool,
                 bootstrap_file: Optional[str], bootstrap_content: Optional[str],
                 run_commands: Tuple[Tuple[str, Optional[str]], ...]):
        self.key = key
        self.display_name = display_name
        self.source_ext = source_ext
        self.test_suffix = test_suffix
        self.framework = framework
        self.resolves_imports = resolves_imports
        self.bootstrap_file = bootstrap_file
        self.bootstrap_content = bootstrap_content
        self.run_commands = run_commands

    @classmethod
    def from_key(cls, key: str) -> "ProjectType":
        for member in cls:
            if member.key == key:
                return member
        raise ValueError(f"Unsupported project type: {key}")

    @classmethod
    def from_path(cls, path: str) -> Optional["ProjectType"]:
        """Ecosystem owning a file, by extension; None when unsupported."""
        for member in cls:
            if path.endswith(member.source_ext):
                return member
        return None


# Directories never walked while counting or discovering sources
VCS_DIRS = {'.git', '.hg', '.svn'}

# Noise directories left out of the project-structure snapshot
TREE_IGNORE_DIRS = {
    'node_modules', '.git', '__pycache__', 'venv', '.venv', '.env',
    '.idea', '.vscode', '.pytest_cache', '.mypy_cache', 'dist', 'build', 'target',
}
MAX_TREE_LINES = 500
MAX_FILES_PER_DIR = 30

DEFAULT_EXCLUDE_PATTERNS = (
    # Directories
    '**/test/**',
    '**/tests/**',
    '**/models/**',
    '**/schemas/**',
    '**/__pycache__/**',
    '**/node_modules/**',
    '**/dist/**',
    '**/venv/**',
    '**/.venv/**',
    '**/target/**',
    '**/build/**',
    '**/migrations/**',
    '**/templates/**',
    '**/static/**',
    '**/config/**',
    '**/docs/**',
    '**/conda/**',
    '**/env/**',
    '**/envs/**',
    '**/environments/**',
    '**/conda-envs/**',
    '**/.conda/**',
    '**/.conda-envs/**',
    '**/.env/**',
    '**/.envs/**',
    '**/.environments/**',
    # Entry points and configuration modules
    '**/__init__.py',
    '**/run.py',
    '**/main.py',
    '**/application.py',
    '**/app.py',
    '**/wsgi.py',
    '**/manage.py',
    '**/settings.py',
    '**/urls.py',
    '**/config.py',
    '**/setup.py',
)


PROD_CODE_DIRS = ('src', 'app', 'lib', 'main', 'core')

MAX_IMPORTED_FILE_CHARS = 4000
GENERATION_TASK_NAME = "project_test_generation"
ANALYSIS_TASK_NAME = "test_results_analysis"

TEST_RESULTS_FILE = "test-results.xml"
REPORTS_DIR = "reports"

# Finished task records kept for polling; older ones are dropped first
MAX_RETAINED_TASKS = 50
