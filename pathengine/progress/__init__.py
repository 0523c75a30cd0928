# Progress tracking and aggregation
from .aggregator import ProgressAggregator
from .directory import SqlTeamDirectory, TeamDirectory
from .tracker import ProgressRecord, ProgressTracker

__all__ = [
    "ProgressAggregator",
    "ProgressRecord",
    "ProgressTracker",
    "SqlTeamDirectory",
    "TeamDirectory",
]
