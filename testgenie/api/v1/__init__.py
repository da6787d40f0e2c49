"""API v1 routers."""

from . import project_tests

__all__ = [
    "project_tests",
]
