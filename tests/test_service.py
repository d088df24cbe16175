from unittest.mock import AsyncMock, patch

import pytest

from phishlens.config import Settings
from phishlens.schema import EmailInput
from phishlens.service import DetectionService


class TestDetectionService:
    """Test cases for the detection service."""

    @pytest.mark.asyncio
    async def test_analyze_phishing_email(self, detection_service, sample_phishing_email):
        result = await detection_service.analyze_email(sample_phishing_email)

        assert result.prediction == "Phishing"
        assert result.confidence <= 99
        keyword_values = [e.value for e in result.explanations if e.type == "keyword"]
        assert keyword_values == ["verify your account", "urgent action"]

    @pytest.mark.asyncio
    async def test_analyze_empty_email(self, detection_service):
        """The engine accepts empty input; SPF may still be simulated as failing."""
        result = await detection_service.analyze_email(EmailInput())

        assert result.highlighted_phrases == []
        assert all(e.type == "header" for e in result.explanations)

    @pytest.mark.asyncio
    async def test_simulated_delay(self, sample_legitimate_email):
        service = DetectionService(Settings(analysis_delay_ms=1500))

        with patch("phishlens.service.asyncio.sleep", new=AsyncMock()) as sleep:
            await service.analyze_email(sample_legitimate_email)

        sleep.assert_awaited_once_with(1.5)

    @pytest.mark.asyncio
    async def test_zero_delay_skips_sleep(self, detection_service, sample_legitimate_email):
        with patch("phishlens.service.asyncio.sleep", new=AsyncMock()) as sleep:
            await detection_service.analyze_email(sample_legitimate_email)

        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_seeded_service_is_reproducible(self, sample_suspicious_email):
        first = DetectionService(Settings(analysis_delay_ms=0, random_seed=7))
        second = DetectionService(Settings(analysis_delay_ms=0, random_seed=7))

        a = await first.analyze_email(sample_suspicious_email)
        b = await second.analyze_email(sample_suspicious_email)

        assert a.prediction == b.prediction
        assert a.confidence == b.confidence
        assert a.indicators == b.indicators
        assert a.id != b.id

    @pytest.mark.asyncio
    async def test_build_report(self, detection_service, sample_phishing_email):
        result = await detection_service.analyze_email(sample_phishing_email)

        report = detection_service.build_report(sample_phishing_email, result)

        assert report.result == result
        assert [s.text for s in report.subject_segments] == ["URGENT ACTION", " REQUIRED"]
        highlighted = [s.text for s in report.body_segments if s.highlight]
        assert highlighted == ["verify your account"]
        assert "".join(s.text for s in report.body_segments) == sample_phishing_email.body

    def test_dashboard_passthrough(self, detection_service):
        assert len(detection_service.dashboard_stats()) == 7
        assert detection_service.dashboard_summary().total_scanned == 1284

    def test_report_for_phrase_across_subject_and_body(
        self, detection_service, make_engine
    ):
        """A phrase matched across the join is listed but not highlighted."""
        email = EmailInput(subject="Lottery", body="winner inside")
        result = make_engine(0.5, 0.5, 0.5, 0.5, 0.5).analyze(email)

        report = detection_service.build_report(email, result)

        assert [h.phrase for h in report.result.highlighted_phrases] == ["lottery winner"]
        assert all(s.highlight is None for s in report.subject_segments)
        assert all(s.highlight is None for s in report.body_segments)
        assert [s.text for s in report.subject_segments] == ["Lottery"]
        assert [s.text for s in report.body_segments] == ["winner inside"]
