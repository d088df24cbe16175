from phishlens.dashboard import dashboard_stats, dashboard_summary


class TestDashboard:
    """Test cases for the static dashboard data."""

    def test_weekly_series(self):
        stats = dashboard_stats()

        assert [s.label for s in stats] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        assert all(s.legitimate_count >= 0 and s.phishing_count >= 0 for s in stats)
        assert (stats[2].legitimate_count, stats[2].phishing_count) == (20, 58)

    def test_same_series_every_call(self):
        assert dashboard_stats() == dashboard_stats()
        assert dashboard_stats() is not dashboard_stats()

    def test_summary(self):
        summary = dashboard_summary()

        assert summary.total_scanned == 1284
        assert summary.phishing_detected == 342
        assert summary.detection_rate == 26.6
        assert summary.accuracy_rate == 98.2
