from typing import List

from phishlens.schema import DashboardStat, DashboardSummary

# Fabricated demo series: (weekday, legitimate, phishing)
WEEKLY_VOLUME = (
    ("Mon", 40, 24),
    ("Tue", 30, 13),
    ("Wed", 20, 58),
    ("Thu", 27, 39),
    ("Fri", 18, 48),
    ("Sat", 23, 38),
    ("Sun", 34, 43),
)


def dashboard_stats() -> List[DashboardStat]:
    """Weekly threat volume shown on the demo dashboard chart."""
    return [
        DashboardStat(label=label, legitimate_count=legit, phishing_count=phishing)
        for label, legit, phishing in WEEKLY_VOLUME
    ]


def dashboard_summary() -> DashboardSummary:
    """Headline cards of the demo dashboard."""
    return DashboardSummary(
        total_scanned=1284,
        phishing_detected=342,
        detection_rate=26.6,
        accuracy_rate=98.2,
    )
