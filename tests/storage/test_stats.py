"""Tests for usage statistics and milestones."""

import json

from codestat.models import AnalysisResult, MilestoneType
from codestat.storage.stats import MAX_MILESTONES, StatsTracker


def _result(root="/p", lines=0, files=0):
    return AnalysisResult(root_path=root, total_lines=lines, total_files=files, code_lines=lines)


def _keys(milestones):
    return [(m.type, m.threshold) for m in milestones]


class TestCounters:
    def test_fresh_stats(self, stores):
        stats = stores.stats.get()
        assert stats.total_lines_analyzed == 0
        assert stats.milestones == []

    def test_real_run(self, stores, clock):
        update = stores.stats.update(_result(lines=120, files=3))
        stats = update.stats

        assert stats.total_lines_analyzed == 120
        assert stats.total_files_analyzed == 3
        assert stats.analyses_completed == 1
        assert stats.total_projects_analyzed == 1
        assert stats.cache_hits == 0
        assert stats.last_updated == clock()

    def test_cache_hit_only_counts_hit(self, stores):
        stores.stats.update(_result(lines=120, files=3))
        stats = stores.stats.update(_result(lines=120, files=3), from_cache=True).stats

        assert stats.cache_hits == 1
        assert stats.total_lines_analyzed == 120
        assert stats.total_files_analyzed == 3
        assert stats.analyses_completed == 1

    def test_projects_are_distinct(self, stores):
        stores.stats.update(_result("/a"))
        stores.stats.update(_result("/a"))
        stats = stores.stats.update(_result("/b")).stats

        assert stats.total_projects_analyzed == 2
        assert stores.stats.projects() == ["/a", "/b"]

    def test_persisted(self, stores, cache_dir, clock):
        stores.stats.update(_result(lines=5))
        assert StatsTracker(cache_dir, clock=clock).get().total_lines_analyzed == 5

    def test_corrupt_stats_file_starts_over(self, stores, cache_dir):
        cache_dir.mkdir(parents=True)
        (cache_dir / "user-stats.json").write_text("][")

        stats = stores.stats.update(_result(lines=5)).stats
        assert stats.total_lines_analyzed == 5


class TestMilestones:
    def test_first_project_milestone(self, stores):
        update = stores.stats.update(_result(lines=10, files=1))
        assert _keys(update.new_milestones) == [(MilestoneType.PROJECTS_ANALYZED, 1)]
        assert update.new_milestones[0].description == "Analyze 1 projects"

    def test_crossing_several_thresholds_at_once(self, stores):
        update = stores.stats.update(_result(lines=6000, files=60))
        assert _keys(update.new_milestones) == [
            (MilestoneType.LINES_ANALYZED, 1000),
            (MilestoneType.LINES_ANALYZED, 5000),
            (MilestoneType.FILES_ANALYZED, 10),
            (MilestoneType.FILES_ANALYZED, 50),
            (MilestoneType.PROJECTS_ANALYZED, 1),
        ]
        assert update.new_milestones[0].description == "Analyze 1,000 lines of code"

    def test_milestone_fires_exactly_once(self, stores):
        first = stores.stats.update(_result(lines=600))
        second = stores.stats.update(_result(lines=600))
        third = stores.stats.update(_result(lines=600))

        assert (MilestoneType.LINES_ANALYZED, 1000) not in _keys(first.new_milestones)
        assert _keys(second.new_milestones) == [(MilestoneType.LINES_ANALYZED, 1000)]
        assert third.new_milestones == []

        recorded = _keys(stores.stats.get().milestones)
        assert len(recorded) == len(set(recorded))

    def test_cache_hits_never_add_lines_milestones(self, stores):
        stores.stats.update(_result(lines=900))
        update = stores.stats.update(_result(lines=900), from_cache=True)
        assert update.new_milestones == []

    def test_log_trimmed_to_most_recent(self, stores, cache_dir):
        cache_dir.mkdir(parents=True)
        milestones = [
            {"type": "LINES_ANALYZED", "threshold": 10_000_000 + i, "achieved_at": float(i), "description": "x"}
            for i in range(MAX_MILESTONES + 5)
        ]
        (cache_dir / "user-stats.json").write_text(json.dumps({"milestones": milestones}))

        stats = stores.stats.update(_result(lines=1)).stats
        assert len(stats.milestones) == MAX_MILESTONES
        assert stats.milestones[-1].type is MilestoneType.PROJECTS_ANALYZED

    def test_cleanup_trims(self, stores, cache_dir):
        cache_dir.mkdir(parents=True)
        milestones = [
            {"type": "FILES_ANALYZED", "threshold": 10_000_000 + i, "achieved_at": 0.0}
            for i in range(MAX_MILESTONES + 3)
        ]
        (cache_dir / "user-stats.json").write_text(json.dumps({"milestones": milestones}))

        assert stores.stats.cleanup() == 3
        assert len(stores.stats.get().milestones) == MAX_MILESTONES
