"""Custom exceptions for the application."""
from typing import Any, Optional
from fastapi import HTTPException, status


class TestGenieException(Exception):
    """Base exception for TestGenie application."""

    __test__ = False

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class WorkspaceNotFoundError(TestGenieException):
    """No usable workspace root was supplied."""
    pass


class ProjectTypeNotDetectedError(TestGenieException):
    """No supported source files were found in the workspace."""
    pass


class NoRelevantFilesError(TestGenieException):
    """Discovery filtering left nothing to generate tests for."""
    pass


class SourceFileError(TestGenieException):
    """A single requested source file cannot be used for generation."""
    pass


class TestRunNotAvailableError(TestGenieException):
    """The task has not produced tests that can be run yet."""
    pass


class TestResultsNotFoundError(TestGenieException):
    """No test-results.xml exists in the workspace root."""
    pass


class AIServiceError(TestGenieException):
    """AI service error exception."""
    pass


def http_exception(status_code: int, detail: str) -> HTTPException:
    """Create HTTP exception."""
    return HTTPException(status_code=status_code, detail=detail)


def not_found(resource: str = "Resource") -> HTTPException:
    """Create 404 not found exception."""
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{resource} not found"
    )


def bad_request(detail: str) -> HTTPException:
    """Create 400 bad request exception."""
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail
    )


def internal_error(detail: str = "Internal server error") -> HTTPException:
    """Create 500 internal server error exception."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail
    )


def conflict(detail: str) -> HTTPException:
    """Create 409 conflict exception."""
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=detail
    )
