import asyncio
import random
import time
from typing import List, Optional

import structlog

from phishlens.config import Settings
from phishlens.dashboard import dashboard_stats, dashboard_summary
from phishlens.highlight import annotate
from phishlens.schema import (
    AnalysisReport,
    AnalysisResult,
    DashboardStat,
    DashboardSummary,
    EmailInput,
)
from phishlens.scoring import ScoringEngine

# Setup structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


class DetectionService:
    """Runs the scoring engine behind a simulated analysis latency."""

    def __init__(self, settings: Settings, engine: Optional[ScoringEngine] = None):
        self.settings = settings
        self.engine = engine or ScoringEngine(
            rules=settings.rules, rng=random.Random(settings.random_seed)
        )
        self.delay_seconds = settings.analysis_delay_ms / 1000.0

    async def analyze_email(self, email: EmailInput) -> AnalysisResult:
        """
        Analyze an email after the configured simulated delay.

        Returns:
            AnalysisResult produced by the scoring engine
        """
        start_time = time.time()

        logger.info(
            "Starting email analysis",
            subject_length=len(email.subject),
            body_length=len(email.body),
            has_headers=bool(email.raw_headers),
            delay_ms=self.settings.analysis_delay_ms,
        )

        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        result = self.engine.analyze(email)

        logger.info(
            "Email analysis completed",
            result_id=result.id,
            prediction=result.prediction,
            confidence=result.confidence,
            explanations=len(result.explanations),
            spf_pass=result.indicators.spf_pass,
            latency_ms=int((time.time() - start_time) * 1000),
        )
        return result

    def build_report(self, email: EmailInput, result: AnalysisResult) -> AnalysisReport:
        """
        Attach annotated subject and body segments to a result.

        Subject and body are annotated separately, so a phrase the engine
        matched across the subject/body join is listed in the result but
        highlighted in neither segment list.
        """
        return AnalysisReport(
            result=result,
            subject_segments=annotate(email.subject, result.highlighted_phrases),
            body_segments=annotate(email.body, result.highlighted_phrases),
        )

    def dashboard_stats(self) -> List[DashboardStat]:
        return dashboard_stats()

    def dashboard_summary(self) -> DashboardSummary:
        return dashboard_summary()
