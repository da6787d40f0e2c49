import uuid
import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from pathlib import Path
from typing import Dict, Any, List, Optional, Sequence, Tuple

from testgenie.core.config import get_settings
from testgenie.utils.exceptions import (
    WorkspaceNotFoundError, ProjectTypeNotDetectedError, NoRelevantFilesError, TestRunNotAvailableError,
)
from .constants import logger, ProjectType, MAX_RETAINED_TASKS
from .models import BatchReport, SourceFile
from .orchestrator import GenerationOrchestrator
from .tools.detect_project import detect_project_type
from .tools.collect_sources import discover_source_files, load_source_file
from .tools.analyze_results import TestResultsAnalyzer
from .tools.generate_tests import GenerationService
from .tools.project_structure import ProjectStructureProvider
from .tools.write_files import TestFileWriter
from .tools.run_tests import TestRunner
from .tools.task_reporter import build_generation_report


class SessionState(str, Enum):
    ABSENT = "absent"
    ACTIVE = "active"


class WorkspaceSession:
    """Workspace linked to a client session; absent until opened."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.state = SessionState.ABSENT
        self.workspace_roots: List[str] = []
        self.project_type: Optional[ProjectType] = None
        self.task_ids: List[str] = []

    def activate(self, workspace_roots: List[str], project_type: Optional[ProjectType]):
        self.workspace_roots = workspace_roots
        self.project_type = project_type
        self.state = SessionState.ACTIVE

    def dispose(self):
        self.workspace_roots = []
        self.project_type = None
        self.state = SessionState.ABSENT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "workspace_roots": list(self.workspace_roots),
            "project_type": self.project_type.key if self.project_type else None,
        }


class TaskProgressReporter:
    """Mirrors orchestrator progress into a task record."""

    def __init__(self, task: Dict[str, Any]):
        self.task = task

    def report(self, message: str, increment: float = 0.0) -> None:
        self.task["progress"] = message
        self.task["percent"] = min(100.0, self.task.get("percent", 0.0) + increment)
        self.task["thinking_steps"].append({"type": "tool_result", "content": message})


def validate_workspace_roots(workspace_roots: Optional[Sequence[str]]) -> List[str]:
    roots = []
    for root in workspace_roots or []:
        path = Path(root).expanduser()
        if path.is_dir():
            roots.append(str(path.resolve()))
        else:
            logger.warning(f"Workspace root does not exist: {root}")
    if not roots:
        raise WorkspaceNotFoundError("No workspace folder found. Please open a project folder first.")
    return roots


class ProjectTestAgent:
    def __init__(
        self,
        generation_service=None,
        structure_provider=None,
        writer=None,
        test_runner: Optional[TestRunner] = None,
        results_analyzer: Optional[TestResultsAnalyzer] = None,
        test_root: Optional[str] = None,
        max_retained_tasks: int = MAX_RETAINED_TASKS,
    ):
        self.generation_service = generation_service or GenerationService()
        self.structure_provider = structure_provider or ProjectStructureProvider()
        self.writer = writer or TestFileWriter()
        self.test_runner = test_runner or TestRunner()
        self.results_analyzer = results_analyzer or TestResultsAnalyzer()
        self.test_root = test_root or get_settings().test_root_dir
        self.max_retained_tasks = max_retained_tasks
        self.sessions: Dict[str, WorkspaceSession] = {}
        self.tasks: Dict[str, Dict[str, Any]] = {}
        self._cancel_events: Dict[str, threading.Event] = {}
        # One worker: batches writing into the same tree run one after another
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="project-test-batch")
        logger.info("🧪 Project Test Agent initialized")

    def shutdown(self):
        for event in list(self._cancel_events.values()):
            event.set()
        self._executor.shutdown(wait=False, cancel_futures=True)

    # ==================== SESSIONS ====================

    def find_session(self, session_id: str) -> Optional[WorkspaceSession]:
        return self.sessions.get(session_id)

    def get_session(self, session_id: str) -> WorkspaceSession:
        """Known session, or a detached absent one; never stores."""
        return self.sessions.get(session_id) or WorkspaceSession(session_id)

    def open_session(self, session_id: str, workspace_roots: Sequence[str]) -> WorkspaceSession:
        roots = validate_workspace_roots(workspace_roots)
        project_type = detect_project_type(roots)
        session = self.sessions.setdefault(session_id, WorkspaceSession(session_id))
        session.activate(roots, project_type)
        logger.info(f"Session {session_id} linked to {roots} (project type: {project_type.key if project_type else 'undetected'})")
        return session

    def close_session(self, session_id: str) -> bool:
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        session.dispose()
        logger.info(f"Session {session_id} closed")
        return True

    def _session_roots(self, session_id: Optional[str],
                       workspace_roots: Optional[Sequence[str]]) -> Optional[Sequence[str]]:
        if workspace_roots or not session_id:
            return workspace_roots
        session = self.find_session(session_id)
        if session and session.state == SessionState.ACTIVE:
            return session.workspace_roots
        return workspace_roots

    # ==================== BATCH ====================

    def prepare_batch(self, workspace_roots: Optional[Sequence[str]]) -> Tuple[List[str], ProjectType, List[SourceFile]]:
        """Run the checks that abort a batch before any generation starts."""
        roots = validate_workspace_roots(workspace_roots)

        project_type = detect_project_type(roots)
        if project_type is None:
            raise ProjectTypeNotDetectedError(
                "Could not detect project type. Please ensure you have Python, Java, or Node.js files in your workspace."
            )

        files = discover_source_files(project_type, roots)
        if not files:
            raise NoRelevantFilesError("No relevant files found for test generation.")

        logger.info(f"Detected {project_type.display_name} project with {len(files)} relevant files")
        return roots, project_type, files

    def prepare_file(self, workspace_roots: Optional[Sequence[str]],
                     file_path: str) -> Tuple[List[str], ProjectType, List[SourceFile]]:
        """Same checks for a single explicitly chosen file, as a batch of one."""
        roots = validate_workspace_roots(workspace_roots)
        source = load_source_file(file_path, roots)
        return roots, source.language, [source]

    def _build_orchestrator(self, progress=None) -> GenerationOrchestrator:
        return GenerationOrchestrator(
            generation_service=self.generation_service,
            structure_provider=self.structure_provider,
            writer=self.writer,
            progress=progress,
            test_root=self.test_root,
        )

    def generate_project_tests(self, workspace_roots: Sequence[str]) -> BatchReport:
        """Blocking batch entry point: detect, discover, generate, report."""
        roots, project_type, files = self.prepare_batch(workspace_roots)
        return self._executor.submit(self._execute_batch, roots, project_type, files).result()

    def generate_file_tests(self, workspace_roots: Sequence[str], file_path: str) -> BatchReport:
        """Blocking entry point for one file."""
        roots, project_type, files = self.prepare_file(workspace_roots, file_path)
        return self._executor.submit(self._execute_batch, roots, project_type, files).result()

    def _execute_batch(self, roots, project_type, files, progress=None, cancel_event=None) -> BatchReport:
        return asyncio.run(self._run_batch(roots, project_type, files, progress, cancel_event))

    async def _run_batch(self, roots, project_type, files, progress=None, cancel_event=None) -> BatchReport:
        orchestrator = self._build_orchestrator(progress)
        results = await orchestrator.run(project_type, files, roots, cancel_event)
        cancelled = bool(cancel_event and cancel_event.is_set() and len(results) < len(files))
        report = BatchReport(
            project_type=project_type,
            workspace_roots=roots,
            results=results,
            cancelled=cancelled,
            report=build_generation_report(project_type, roots[0], results, cancelled),
        )
        if report.failed:
            logger.warning(f"⚠️ {len(report.failed)}/{len(results)} files failed test generation")
        else:
            logger.info(f"✅ Project test cases generated successfully ({len(results)} files)")
        return report

    # ==================== BACKGROUND TASKS ====================

    def start_generate_task(self, session_id: Optional[str] = None,
                            workspace_roots: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        roots, project_type, files = self.prepare_batch(self._session_roots(session_id, workspace_roots))
        return self._start_task(session_id, roots, project_type, files, [
            f"Detected {project_type.display_name} project",
            f"Found {len(files)} relevant files",
        ])

    def start_file_task(self, file_path: str, session_id: Optional[str] = None,
                        workspace_roots: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        roots, project_type, files = self.prepare_file(self._session_roots(session_id, workspace_roots), file_path)
        return self._start_task(session_id, roots, project_type, files, [
            f"Generating {project_type.framework} tests for {files[0].relative_path}",
        ])

    def _start_task(self, session_id, roots, project_type, files, steps: List[str]) -> Dict[str, Any]:
        self._prune_finished_tasks()
        busy = any(t["status"] == "running" for t in self.tasks.values())

        task_id = str(uuid.uuid4())
        cancel_event = threading.Event()
        self._cancel_events[task_id] = cancel_event
        self.tasks[task_id] = {
            "task_id": task_id,
            "status": "running",
            "progress": "Queued behind the running batch..." if busy else "Starting...",
            "percent": 0.0,
            "thinking_steps": [{"type": "tool_result", "content": step} for step in steps],
            "response": None,
            "success": None,
            "session_id": session_id,
            "workspace_roots": roots,
            "project_type": project_type.key,
            "file_count": len(files),
            "results": [],
            "offer_test_run": False,
        }
        session = self.find_session(session_id) if session_id else None
        if session:
            session.task_ids.append(task_id)

        self._executor.submit(self._run_generate_task, task_id, roots, project_type, files, cancel_event)
        return self.tasks[task_id]

    def _run_generate_task(self, task_id: str, roots, project_type, files, cancel_event):
        task = self.tasks[task_id]
        try:
            report = self._execute_batch(roots, project_type, files, TaskProgressReporter(task), cancel_event)
            # Generated code is already on disk; the record keeps paths and status only
            task["results"] = [r.model_dump(mode="json", exclude={"content"}) for r in report.results]
            task["response"] = report.report
            task["success"] = not report.failed
            task["offer_test_run"] = bool(report.succeeded)
            task["progress"] = "Cancelled" if report.cancelled else "Complete"
            # status last: pollers stop on it
            task["status"] = "cancelled" if report.cancelled else "completed"
        except Exception as e:
            logger.exception(f"❌ Task {task_id} error: {e}")
            task["success"] = False
            task["response"] = f"An error occurred during test generation: {str(e)}"
            task["progress"] = "Error"
            task["status"] = "completed"
        finally:
            self._cancel_events.pop(task_id, None)

    def _prune_finished_tasks(self):
        finished = [tid for tid, t in self.tasks.items() if t["status"] != "running"]
        for tid in finished[:max(0, len(finished) - self.max_retained_tasks)]:
            del self.tasks[tid]

    def cancel_task(self, task_id: str) -> bool:
        event = self._cancel_events.get(task_id)
        if event is None:
            return False
        event.set()
        self.tasks[task_id]["progress"] = "Cancelling..."
        return True

    def get_task_status(self, task_id: str) -> Optional[Dict[str, Any]]:
        task = self.tasks.get(task_id)
        if not task:
            return None
        return {
            "task_id": task_id,
            "status": task["status"],
            "progress": task.get("progress", ""),
            "thinking_steps": task.get("thinking_steps", []),
            "response": task.get("response"),
            "success": task.get("success"),
            "project_type": task.get("project_type"),
            "results": task.get("results", []),
            "offer_test_run": task.get("offer_test_run", False),
        }

    def run_tests_for_task(self, task_id: str) -> Optional[Dict[str, Any]]:
        task = self.tasks.get(task_id)
        if not task:
            return None
        if task["status"] == "running" or not task.get("offer_test_run"):
            raise TestRunNotAvailableError(
                "Tests can be run once generation has finished with at least one test file written."
            )
        project_type = ProjectType.from_key(task["project_type"])
        return self.test_runner.run(project_type, task["workspace_roots"][0], self.test_root)

    # ==================== TEST RESULTS ====================

    async def analyze_test_results(self, session_id: Optional[str] = None,
                                   workspace_roots: Optional[Sequence[str]] = None) -> Dict[str, str]:
        """Summarise `test-results.xml` in the first workspace root as a markdown report."""
        roots = validate_workspace_roots(self._session_roots(session_id, workspace_roots))
        return await self.results_analyzer.analyze(roots[0])

    async def analyze_task_results(self, task_id: str) -> Optional[Dict[str, str]]:
        task = self.tasks.get(task_id)
        if not task:
            return None
        return await self.analyze_test_results(workspace_roots=task["workspace_roots"])
