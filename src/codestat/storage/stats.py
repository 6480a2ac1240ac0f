"""Cumulative usage statistics and one-time milestones."""

from __future__ import annotations

from pathlib import Path

from ..logging_config import get_logger
from ..models import AnalysisResult, Milestone, MilestoneType, StatsUpdate, UserStats, milestone_description
from .base import Clock, JsonDocument, system_clock

logger = get_logger(__name__)

STATS_FILE = "user-stats.json"
PROJECTS_FILE = "analyzed-projects.json"

MAX_MILESTONES = 1000

MILESTONE_THRESHOLDS: dict[MilestoneType, tuple[int, ...]] = {
    MilestoneType.LINES_ANALYZED: (1000, 5000, 10000, 25000, 50000, 100000, 250000, 500000, 1000000),
    MilestoneType.FILES_ANALYZED: (10, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
    MilestoneType.PROJECTS_ANALYZED: (1, 5, 10, 25, 50, 100),
}


class StatsTracker:
    """Owns ``user-stats.json`` and the distinct-project registry."""

    def __init__(self, base_dir: Path, clock: Clock = system_clock):
        self.base_dir = Path(base_dir)
        self.clock = clock
        self._stats = JsonDocument(self.base_dir / STATS_FILE, dict)
        self._projects = JsonDocument(self.base_dir / PROJECTS_FILE, list)

    def load(self) -> UserStats:
        data = self._stats.read()
        if not isinstance(data, dict):
            return UserStats()
        try:
            return UserStats.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed usage statistics: {e}")
            return UserStats()

    def get(self) -> UserStats:
        """Current statistics, unchanged."""
        return self.load()

    def save(self, stats: UserStats) -> None:
        stats.last_updated = self.clock()
        self._stats.write(stats.to_dict())

    def projects(self) -> list[str]:
        data = self._projects.read()
        if not isinstance(data, list):
            return []
        return [p for p in data if isinstance(p, str)]

    def update(self, result: AnalysisResult, from_cache: bool = False) -> StatsUpdate:
        """
        Record one analysis.

        A cache hit only bumps ``cache_hits``. A real run adds its totals,
        bumps ``analyses_completed`` and registers the project. Milestones are
        checked either way and each (type, threshold) is recorded at most once.
        """
        stats = self.load()

        if from_cache:
            stats.cache_hits += 1
        else:
            stats.total_lines_analyzed += result.total_lines
            stats.total_files_analyzed += result.total_files
            stats.analyses_completed += 1
            stats.total_projects_analyzed = self._register_project(result.root_path)

        new_milestones = self._check_milestones(stats)
        if len(stats.milestones) > MAX_MILESTONES:
            stats.milestones = stats.milestones[-MAX_MILESTONES:]

        self.save(stats)
        for milestone in new_milestones:
            logger.info(f"Milestone reached: {milestone.description}")
        return StatsUpdate(stats=stats, new_milestones=new_milestones)

    def cleanup(self) -> int:
        """Trim the milestone log to the most recent entries."""
        stats = self.load()
        excess = len(stats.milestones) - MAX_MILESTONES
        if excess <= 0:
            return 0
        stats.milestones = stats.milestones[-MAX_MILESTONES:]
        self.save(stats)
        return excess

    def _register_project(self, root_path: str) -> int:
        projects = self.projects()
        if root_path not in projects:
            projects.append(root_path)
            self._projects.write(projects)
        return len(projects)

    def _check_milestones(self, stats: UserStats) -> list[Milestone]:
        values: dict[MilestoneType, int] = {
            MilestoneType.LINES_ANALYZED: stats.total_lines_analyzed,
            MilestoneType.FILES_ANALYZED: stats.total_files_analyzed,
            MilestoneType.PROJECTS_ANALYZED: stats.total_projects_analyzed,
        }
        now = self.clock()
        reached = []
        for kind, thresholds in MILESTONE_THRESHOLDS.items():
            for threshold in thresholds:
                if values[kind] >= threshold and not stats.has_milestone(kind, threshold):
                    milestone = Milestone(
                        type=kind,
                        threshold=threshold,
                        achieved_at=now,
                        description=milestone_description(kind, threshold),
                    )
                    stats.milestones.append(milestone)
                    reached.append(milestone)
        return reached
