import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict

from testgenie.prompts import prompt_loader
from testgenie.utils.exceptions import AIServiceError, TestResultsNotFoundError
from ..ai_service import AIService
from ..constants import ANALYSIS_TASK_NAME, REPORTS_DIR, TEST_RESULTS_FILE
from .generate_tests import PROMPT_FILE
from .write_files import write_test_file

logger = logging.getLogger(__name__)


def report_timestamp(now: datetime = None) -> str:
    """ISO-8601 UTC time with ':' and '.' swapped for '-' so it fits a file name."""
    now = now or datetime.now(timezone.utc)
    iso = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
    return iso.replace(":", "-").replace(".", "-")


def build_analysis_prompt(test_results: str, ai_service: AIService = None) -> str:
    system_message = prompt_loader.get_prompt(PROMPT_FILE, "system")
    user_message = prompt_loader.get_prompt(PROMPT_FILE, "analyze_test_results").format(
        test_results=test_results,
    )
    return (ai_service or AIService()).build_prompt(system_message.strip(), user_message)


class TestResultsAnalyzer:
    """Turns `<root>/test-results.xml` into a markdown report under `<root>/reports/`."""

    __test__ = False

    def __init__(self, ai_service: AIService = None,
                 results_file: str = TEST_RESULTS_FILE, reports_dir: str = REPORTS_DIR):
        self.ai_service = ai_service or AIService()
        self.results_file = results_file
        self.reports_dir = reports_dir

    async def analyze(self, workspace_root: str) -> Dict[str, str]:
        root = Path(workspace_root)
        results_path = root / self.results_file
        if not results_path.is_file():
            raise TestResultsNotFoundError("No test-results.xml file found. Please run tests first.")

        logger.info(f"Reading test results from {results_path}")
        test_results = results_path.read_text(encoding="utf-8", errors="ignore")

        prompt = build_analysis_prompt(test_results, self.ai_service)
        analysis = await self.ai_service.generate(prompt, task_name=ANALYSIS_TASK_NAME)
        if not (analysis or "").strip():
            raise AIServiceError("Analysis service returned an empty response")

        report_path = root / self.reports_dir / f"test-analysis-{report_timestamp()}.md"
        written = write_test_file(str(report_path), analysis)
        logger.info(f"✅ Test results analysis written to {written}")
        return {"report_path": written, "analysis": analysis}
