"""Sequential per-file test generation.

Exactly one external call (structure snapshot or generation) is outstanding
at any time: every call is awaited inside a plain loop before the next file
starts. Failures are contained per file.
"""
import threading
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from .constants import logger, ProjectType
from .helpers.test_path import determine_test_path
from .models import GenerationResult, GenerationTask, SourceFile
from .utils.import_resolver import find_imports, resolve_imports, build_imported_context


class GenerationBackend(Protocol):
    async def generate_tests(self, task: GenerationTask, test_file_path: str) -> str: ...


class StructureProvider(Protocol):
    async def snapshot(self, workspace_root: str) -> str: ...


class Writer(Protocol):
    def write(self, test_file_path: str, content: str) -> str: ...

    def ensure_bootstrap(self, test_root_path: str, project_type: ProjectType) -> bool: ...


class ProgressReporter(Protocol):
    def report(self, message: str, increment: float = 0.0) -> None: ...


class NullProgressReporter:
    def report(self, message: str, increment: float = 0.0) -> None:
        pass


class GenerationOrchestrator:
    def __init__(
        self,
        generation_service: GenerationBackend,
        structure_provider: StructureProvider,
        writer: Writer,
        progress: Optional[ProgressReporter] = None,
        test_root: str = "tests",
    ):
        self.generation_service = generation_service
        self.structure_provider = structure_provider
        self.writer = writer
        self.progress = progress or NullProgressReporter()
        self.test_root = test_root

    async def run(
        self,
        project_type: ProjectType,
        files: Sequence[SourceFile],
        workspace_roots: Sequence[str],
        cancel_event: Optional[threading.Event] = None,
    ) -> List[GenerationResult]:
        results: List[GenerationResult] = []
        bootstrapped = set()
        total = len(files)

        for i, source in enumerate(files):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Generation cancelled after {i}/{total} files")
                self.progress.report(f"Cancelled after {i}/{total} files")
                break

            name = Path(source.relative_path).name
            self.progress.report(f"Processing file {i + 1}/{total}: {name}", 100 / total)
            result = await self._process_file(project_type, source, workspace_roots, bootstrapped)
            results.append(result)

            if result.succeeded:
                logger.info(f"Created test file: {result.test_file_path}")
            else:
                logger.error(f"Error processing file {source.relative_path}: {result.error}")
                self.progress.report(f"Failed {name}: {result.error}")

        succeeded = sum(1 for r in results if r.succeeded)
        logger.info(f"Batch finished: {succeeded} succeeded, {len(results) - succeeded} failed")
        return results

    async def _process_file(self, project_type, source, workspace_roots, bootstrapped) -> GenerationResult:
        test_file_path = None
        try:
            task = await self._build_task(project_type, source, workspace_roots)
            mapping = determine_test_path(source, project_type, self.test_root)
            test_file_path = mapping.test_file_path

            test_code = await self.generation_service.generate_tests(task, test_file_path)

            test_root_path = str(Path(source.workspace_root) / self.test_root)
            if project_type.bootstrap_file and test_root_path not in bootstrapped:
                self.writer.ensure_bootstrap(test_root_path, project_type)
                bootstrapped.add(test_root_path)

            self.writer.write(test_file_path, test_code)
            return GenerationResult.success(source.relative_path, test_file_path, test_code)
        except Exception as e:
            return GenerationResult.failed(source.relative_path, str(e) or type(e).__name__, test_file_path)

    async def _build_task(self, project_type, source, workspace_roots) -> GenerationTask:
        imported_context = []
        if project_type.resolves_imports:
            specifiers = find_imports(source.content)
            resolved = resolve_imports(specifiers, workspace_roots)
            imported_context = build_imported_context(specifiers, resolved)
            logger.info(f"{source.relative_path}: resolved {len(resolved)}/{len(specifiers)} imports")

        try:
            structure = await self.structure_provider.snapshot(source.workspace_root)
        except Exception as e:
            logger.warning(f"Project structure unavailable for {source.workspace_root}: {e}")
            structure = ""

        return GenerationTask(
            source_file=source,
            imported_context=imported_context,
            project_structure=structure,
        )
