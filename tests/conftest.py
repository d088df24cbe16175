from datetime import datetime, timezone

import pytest

from phishlens.config import Settings
from phishlens.schema import EmailInput
from phishlens.scoring import ScoringEngine
from phishlens.service import DetectionService

FIXED_TIME = datetime(2024, 3, 4, 12, 0, 0, tzinfo=timezone.utc)


class ScriptedRandom:
    """Random source returning pre-set values in order."""

    def __init__(self, *values):
        self.values = list(values)
        self.calls = 0

    def random(self):
        self.calls += 1
        return self.values.pop(0)


@pytest.fixture
def scripted_random():
    """Factory for scripted random sources."""
    return ScriptedRandom


@pytest.fixture
def fixed_time():
    return FIXED_TIME


@pytest.fixture
def make_engine():
    """Build an engine with scripted draws, fixed id and fixed clock."""

    def _make(*draws, rules=None):
        return ScoringEngine(
            rules=rules,
            rng=ScriptedRandom(*draws),
            id_factory=lambda: "result-1",
            clock=lambda: FIXED_TIME,
        )

    return _make


@pytest.fixture
def instant_settings():
    """Settings without simulated latency."""
    return Settings(analysis_delay_ms=0, random_seed=1234)


@pytest.fixture
def detection_service(instant_settings):
    return DetectionService(instant_settings)


@pytest.fixture
def sample_phishing_email():
    """Email hitting two keywords and the unsecured link rule."""
    return EmailInput(
        subject="URGENT ACTION REQUIRED",
        body="Please verify your account now at http://bit.ly/x",
        raw_headers="From: Security <alerts@bank-0f-america.example>",
        from_address="alerts@bank-0f-america.example",
    )


@pytest.fixture
def sample_suspicious_email():
    """Email hitting exactly one keyword."""
    return EmailInput(
        subject="Congratulations!",
        body="You are our LOTTERY WINNER this month. Reply to claim.",
    )


@pytest.fixture
def sample_legitimate_email():
    """Email with no scoring content."""
    return EmailInput(
        subject="Team lunch on Friday",
        body="Hi all, lunch is booked for noon. See the menu at https://example.com/menu",
        from_address="office@example.com",
    )
