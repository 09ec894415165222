"""Discovery, budgeting and orchestration of project analysis."""

from .analyzer import FileOutcome, ProjectAnalyzer, build_default_analyzer
from .content import ContentAssembler
from .discovery import FileDiscoverer
from .prioritizer import FilePrioritizer

__all__ = [
    "ContentAssembler",
    "FileDiscoverer",
    "FileOutcome",
    "FilePrioritizer",
    "ProjectAnalyzer",
    "build_default_analyzer",
]
