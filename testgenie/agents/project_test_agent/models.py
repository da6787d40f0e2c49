from enum import Enum
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .constants import ProjectType, DEFAULT_EXCLUDE_PATTERNS
from .utils.pattern_matcher import matches_any_pattern, contains_keyword


class SourceFile(BaseModel):
    """Read-only snapshot of a discovered source file."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    absolute_path: str
    relative_path: str
    workspace_root: str
    language: ProjectType
    content: str

    @field_serializer("language")
    def _serialize_language(self, language: ProjectType) -> str:
        return language.key


class ResolvedImport(BaseModel):
    model_config = ConfigDict(frozen=True)

    resolved_path: str
    content: str


class TestPathMapping(BaseModel):
    model_config = ConfigDict(frozen=True)
    __test__ = False

    test_dir_path: str
    test_file_path: str


class ExclusionRuleSet(BaseModel):
    """Exclude-then-require-keyword discovery policy."""
    model_config = ConfigDict(frozen=True)

    patterns: Tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    inclusion_keywords: Tuple[str, ...] = ()

    def is_excluded(self, relative_path: str) -> bool:
        return matches_any_pattern(relative_path, self.patterns)

    def has_inclusion_keyword(self, relative_path: str) -> bool:
        return contains_keyword(relative_path, self.inclusion_keywords)

    def accepts(self, relative_path: str) -> bool:
        return not self.is_excluded(relative_path) and self.has_inclusion_keyword(relative_path)


class GenerationTask(BaseModel):
    source_file: SourceFile
    imported_context: List[Tuple[str, str]] = []
    project_structure: str = ""


class GenerationStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class GenerationResult(BaseModel):
    source_path: str
    test_file_path: Optional[str] = None
    content: str = ""
    status: GenerationStatus
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == GenerationStatus.SUCCESS

    @classmethod
    def success(cls, source_path: str, test_file_path: str, content: str) -> "GenerationResult":
        return cls(source_path=source_path, test_file_path=test_file_path,
                   content=content, status=GenerationStatus.SUCCESS)

    @classmethod
    def failed(cls, source_path: str, error: str, test_file_path: Optional[str] = None) -> "GenerationResult":
        return cls(source_path=source_path, test_file_path=test_file_path,
                   status=GenerationStatus.FAILED, error=error)


class BatchReport(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    project_type: ProjectType
    workspace_roots: List[str]
    results: List[GenerationResult] = []
    cancelled: bool = False
    report: str = ""

    @property
    def succeeded(self) -> List[GenerationResult]:
        return [r for r in self.results if r.succeeded]

    @property
    def failed(self) -> List[GenerationResult]:
        return [r for r in self.results if not r.succeeded]

    @field_serializer("project_type")
    def _serialize_project_type(self, project_type: ProjectType) -> str:
        return project_type.key


# ==================== API MODELS ====================

class ThinkingStep(BaseModel):
    type: str
    content: str
    tool_name: Optional[str] = None


class WorkspaceRequest(BaseModel):
    workspace_roots: List[str]
    session_id: Optional[str] = None


class GenerateProjectTestsRequest(BaseModel):
    session_id: Optional[str] = None
    workspace_roots: List[str] = Field(default_factory=list)


class GenerateFileTestsRequest(GenerateProjectTestsRequest):
    file_path: str


class TestAnalysisResponse(BaseModel):
    __test__ = False

    success: bool = True
    report_path: str
    analysis: str


class SessionResponse(BaseModel):
    session_id: str
    state: str
    workspace_roots: List[str] = []
    project_type: Optional[str] = None


class TaskStatusResponse(BaseModel):
    task_id: str
    status: str
    progress: str
    thinking_steps: List[ThinkingStep] = []
    response: Optional[str] = None
    success: Optional[bool] = None
    project_type: Optional[str] = None
    results: List[GenerationResult] = []
    offer_test_run: bool = False
