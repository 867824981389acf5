"""Tests for health scoring and alert classification."""

import pytest

from sysdash import health
from sysdash.models import HealthStatus, Severity


class TestScore:
    """Tests for the tiered health score."""

    def test_idle_system_scores_100(self):
        assert health.score(0, 0, 0) == 100
        assert health.status(100) is HealthStatus.EXCELLENT

    def test_high_memory_only(self):
        """Test memory above 90% costs 40 points."""
        assert health.score(91, 0, 0) == 60
        assert health.status(60) is HealthStatus.WARNING

    def test_everything_saturated(self):
        assert health.score(91, 91, 91) == 0
        assert health.status(0) is HealthStatus.CRITICAL

    @pytest.mark.parametrize(
        ("memory", "expected"),
        [(50, 100), (50.01, 95), (60, 95), (61, 85), (75, 85), (76, 70), (90, 70), (90.5, 60)],
    )
    def test_memory_tiers_are_strict(self, memory, expected):
        """Test thresholds use '>' and only the highest tier applies."""
        assert health.score(memory, 0) == expected

    def test_cpu_tiers_match_memory(self):
        assert health.score(0, 80) == health.score(80, 0) == 70

    @pytest.mark.parametrize(("disk", "expected"), [(60, 100), (61, 93), (76, 85), (91, 80)])
    def test_disk_tiers(self, disk, expected):
        assert health.score(0, 0, disk) == expected

    def test_disk_defaults_to_zero(self):
        assert health.score(0, 0) == 100

    def test_score_floors_at_zero(self):
        assert health.score(100, 100, 100) == 0

    def test_score_is_pure(self):
        """Test identical inputs always give identical output."""
        assert health.score(77.7, 63.2, 80.1) == health.score(77.7, 63.2, 80.1)

    def test_memory_80_percent_deducts_30(self):
        assert health.score(80.0, 0) == 70


class TestStatus:
    """Tests for the status label boundaries."""

    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (85, HealthStatus.EXCELLENT),
            (84, HealthStatus.GOOD),
            (70, HealthStatus.GOOD),
            (69, HealthStatus.WARNING),
            (50, HealthStatus.WARNING),
            (49, HealthStatus.CRITICAL),
        ],
    )
    def test_boundaries(self, score, expected):
        assert health.status(score) is expected


class TestEvaluate:
    """Tests for evaluate()."""

    def test_unknown_disk_scores_as_zero(self):
        report = health.evaluate(10.0, 10, None)

        assert report.score == 100
        assert report.status is HealthStatus.EXCELLENT
        assert report.disk_percent is None

    def test_report_keeps_inputs(self):
        report = health.evaluate(80.0, 95, 65.0)

        assert report.score == 100 - 30 - 40 - 7
        assert report.status is HealthStatus.CRITICAL
        assert (report.memory_percent, report.cpu_percent, report.disk_percent) == (80.0, 95, 65.0)


class TestClassify:
    """Tests for usage alert classification."""

    @pytest.mark.parametrize(
        ("percent", "expected"),
        [
            (0, Severity.SUCCESS),
            (49.99, Severity.SUCCESS),
            (50, Severity.INFO),
            (74.99, Severity.INFO),
            (75, Severity.WARN),
            (89.99, Severity.WARN),
            (90, Severity.DANGER),
            (100, Severity.DANGER),
        ],
    )
    def test_classify_usage(self, percent, expected):
        assert health.classify_usage(percent) is expected

    def test_classify_all_dimensions(self):
        alerts = health.classify(80.0, 10, 95.0)

        assert alerts.memory is Severity.WARN
        assert alerts.cpu is Severity.SUCCESS
        assert alerts.disk is Severity.DANGER

    def test_missing_disk_is_unclassified(self):
        assert health.classify(10.0, 10, None).disk is None
