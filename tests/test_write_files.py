"""
Tests for writing generated tests and the shared bootstrap file.
"""

import threading
from pathlib import Path

from testgenie.agents.project_test_agent.constants import PYTHON_BOOTSTRAP_CONTENT, ProjectType
from testgenie.agents.project_test_agent.tools.write_files import (
    TestFileWriter,
    ensure_bootstrap_file,
    write_test_file,
)


class TestWriteTestFile:
    def test_creates_missing_directories(self, tmp_path: Path):
        target = tmp_path / "tests" / "app" / "services" / "billing_test.py"
        written = write_test_file(str(target), "def test_x():\n    pass\n")
        assert written == str(target)
        assert target.read_text() == "def test_x():\n    pass\n"

    def test_overwrites_existing_file(self, tmp_path: Path):
        target = tmp_path / "billing_test.py"
        target.write_text("old")
        write_test_file(str(target), "new")
        assert target.read_text() == "new"

    def test_writer_delegates(self, tmp_path: Path):
        target = tmp_path / "x" / "y_test.py"
        TestFileWriter().write(str(target), "content")
        assert target.read_text() == "content"


class TestEnsureBootstrapFile:
    def test_created_once(self, tmp_path: Path):
        test_root = tmp_path / "tests"
        assert ensure_bootstrap_file(str(test_root), ProjectType.PYTHON) is True
        bootstrap = test_root / "conftest.py"
        assert bootstrap.read_text() == PYTHON_BOOTSTRAP_CONTENT

        assert ensure_bootstrap_file(str(test_root), ProjectType.PYTHON) is False
        assert bootstrap.read_text() == PYTHON_BOOTSTRAP_CONTENT

    def test_existing_file_left_untouched(self, tmp_path: Path):
        test_root = tmp_path / "tests"
        test_root.mkdir()
        (test_root / "conftest.py").write_text("# hand written\n")
        assert TestFileWriter().ensure_bootstrap(str(test_root), ProjectType.PYTHON) is False
        assert (test_root / "conftest.py").read_text() == "# hand written\n"

    def test_no_bootstrap_for_other_ecosystems(self, tmp_path: Path):
        test_root = tmp_path / "tests"
        assert ensure_bootstrap_file(str(test_root), ProjectType.JAVA) is False
        assert ensure_bootstrap_file(str(test_root), ProjectType.NODEJS) is False
        assert not test_root.exists()

    def test_content_comes_from_project_type(self, tmp_path: Path):
        assert ProjectType.PYTHON.bootstrap_content == PYTHON_BOOTSTRAP_CONTENT
        assert ProjectType.JAVA.bootstrap_content is None
        assert ProjectType.NODEJS.bootstrap_content is None

    def test_concurrent_writers_create_it_once(self, tmp_path: Path):
        test_root = tmp_path / "tests"
        barrier = threading.Barrier(8)
        created = []

        def writer():
            barrier.wait()
            created.append(ensure_bootstrap_file(str(test_root), ProjectType.PYTHON))

        threads = [threading.Thread(target=writer) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(created) == [False] * 7 + [True]
        assert (test_root / "conftest.py").read_text() == PYTHON_BOOTSTRAP_CONTENT
