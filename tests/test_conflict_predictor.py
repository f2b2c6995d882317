"""
Tests for the conflict preview.
"""

from wt.core.sync import ConflictPredictor, overlapping_paths
from wt.core.vcs import GitError


class TestOverlappingPaths:
    def test_intersection(self):
        assert overlapping_paths({"x", "y"}, {"y", "z"}) == {"y"}

    def test_disjoint(self):
        assert overlapping_paths({"x"}, {"z"}) == set()

    def test_accepts_any_iterable(self):
        assert overlapping_paths(["a", "b", "a"], ("b",)) == {"b"}


class TestConflictPredictor:
    def test_predict_sorted_overlap(self, fake_vcs):
        fake_vcs.remote_changed = {"src/b.py", "src/a.py", "README.md"}
        fake_vcs.local_changed = {"src/a.py", "src/b.py", "tests/test_a.py"}

        forecast = ConflictPredictor(fake_vcs).predict("origin/main")

        assert forecast.paths == ["src/a.py", "src/b.py"]
        assert forecast.has_overlap is True
        assert forecast.merge_base == "b4se"
        assert forecast.onto == "origin/main"

    def test_predict_no_overlap(self, fake_vcs):
        fake_vcs.remote_changed = {"a.py"}
        fake_vcs.local_changed = {"b.py"}

        forecast = ConflictPredictor(fake_vcs).predict("origin/main")

        assert forecast.has_overlap is False

    def test_git_error_gives_empty_forecast(self, fake_vcs):
        fake_vcs.fail["merge_base"] = GitError("git merge-base failed")

        forecast = ConflictPredictor(fake_vcs).predict("origin/main")

        assert forecast.paths == []
        assert forecast.merge_base is None
