"""TestGenie: project-wide unit test generation service."""

__version__ = "1.0.0"
