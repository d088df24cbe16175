import logging
import math
import random
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol, Tuple

from phishlens.config import ScoringRules
from phishlens.schema import (
    AnalysisResult,
    EmailInput,
    FeatureExplanation,
    HighlightSpan,
    Indicators,
)

logger = logging.getLogger(__name__)

LEGITIMATE = "Legitimate"
SUSPICIOUS = "Suspicious"
PHISHING = "Phishing"

PHISHING_THRESHOLD = 50
SUSPICIOUS_THRESHOLD = 20


class RandomSource(Protocol):
    def random(self) -> float:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


class ScoringEngine:
    """
    Heuristic phishing scorer.

    Keyword and URL rules are deterministic. SPF outcome, confidence inside the
    Suspicious/Legitimate bands and most indicators are simulated with draws
    from the injected random source, always in this order: SPF, confidence
    (non-Phishing only), urls_count, has_ip_url, mismatched_sender.
    """

    def __init__(
        self,
        rules: Optional[ScoringRules] = None,
        rng: Optional[RandomSource] = None,
        id_factory: Callable[[], str] = _new_id,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.rules = (rules or ScoringRules()).validate()
        self.rng = rng if rng is not None else random.Random()
        self.id_factory = id_factory
        self.clock = clock

    def analyze(self, email: EmailInput) -> AnalysisResult:
        """
        Score an email and explain the verdict.

        Returns:
            AnalysisResult with label, confidence, explanations and indicators
        """
        score, explanations, highlights = self.score_content(email.subject, email.body)

        spf_fail = self.rng.random() > 1.0 - self.rules.spf_fail_probability
        if spf_fail:
            score += self.rules.spf_fail_points
            explanations.append(
                FeatureExplanation(
                    type="header",
                    value="SPF Fail",
                    weight=self.rules.spf_fail_weight,
                    description="Sender Policy Framework (SPF) check failed.",
                )
            )

        prediction, confidence = self.classify(score)
        indicators = self._draw_indicators(spf_fail)

        result = AnalysisResult(
            id=self.id_factory(),
            timestamp=self.clock(),
            prediction=prediction,
            confidence=confidence,
            explanations=explanations,
            highlighted_phrases=highlights,
            indicators=indicators,
        )

        logger.debug(
            "Scored email %s: score=%d prediction=%s confidence=%d rules=%d",
            result.id,
            score,
            prediction,
            confidence,
            len(explanations),
        )
        return result

    def score_content(
        self, subject: str, body: str
    ) -> Tuple[int, List[FeatureExplanation], List[HighlightSpan]]:
        """Apply the deterministic keyword and URL rules."""
        text = f"{subject} {body}".lower()
        score = 0
        explanations: List[FeatureExplanation] = []
        highlights: List[HighlightSpan] = []

        for keyword in self.rules.danger_keywords:
            if keyword.lower() not in text:
                continue
            score += self.rules.keyword_points
            explanations.append(
                FeatureExplanation(
                    type="keyword",
                    value=keyword,
                    weight=self.rules.keyword_weight,
                    description=(
                        f'High-risk phrase "{keyword}" often found in phishing.'
                    ),
                )
            )
            highlights.append(
                HighlightSpan(
                    phrase=keyword,
                    category="danger",
                    reason="High-risk phishing keyword",
                )
            )

        if "http://" in body:
            score += self.rules.http_points
            explanations.append(
                FeatureExplanation(
                    type="url",
                    value="Unsecured HTTP",
                    weight=self.rules.http_weight,
                    description="Contains unsecured HTTP links.",
                )
            )

        return score, explanations, highlights

    def classify(self, score: int) -> Tuple[str, int]:
        """Map a score to a label and an integer confidence."""
        if score > PHISHING_THRESHOLD:
            return PHISHING, math.floor(min(99, 70 + score / 2))
        elif score > SUSPICIOUS_THRESHOLD:
            return SUSPICIOUS, math.floor(60 + self.rng.random() * 20)
        else:
            # High confidence that it is safe
            return LEGITIMATE, math.floor(90 + self.rng.random() * 8)

    def _draw_indicators(self, spf_fail: bool) -> Indicators:
        urls_count = math.floor(self.rng.random() * self.rules.max_urls_count)
        has_ip_url = self.rng.random() > 1.0 - self.rules.ip_url_probability
        mismatched_sender = (
            self.rng.random() > 1.0 - self.rules.mismatched_sender_probability
        )

        return Indicators(
            urls_count=urls_count,
            has_ip_url=has_ip_url,
            spf_pass=not spf_fail,
            dkim_pass=True,
            mismatched_sender=mismatched_sender,
        )
