"""Orchestrator package - coordinates the staging and commit workflow."""
from .commit import CommitHandler
from .core import UploadOrchestrator

__all__ = ["UploadOrchestrator", "CommitHandler"]
