from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Prediction = Literal["Legitimate", "Suspicious", "Phishing"]


class EmailInput(BaseModel):
    subject: str = ""
    body: str = ""
    raw_headers: str = ""
    from_address: Optional[str] = None


class FeatureExplanation(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["keyword", "url", "header", "structure"]
    value: str
    weight: float = Field(ge=0.0, le=1.0)
    description: str


class HighlightSpan(BaseModel):
    model_config = ConfigDict(frozen=True)

    phrase: str
    category: Literal["danger", "warning"] = "danger"
    reason: str


class Indicators(BaseModel):
    model_config = ConfigDict(frozen=True)

    urls_count: int = Field(default=0, ge=0)
    has_ip_url: bool = False
    spf_pass: bool = True
    dkim_pass: bool = True
    mismatched_sender: bool = False


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    timestamp: datetime
    prediction: Prediction
    confidence: int = Field(ge=0, le=100)
    explanations: List[FeatureExplanation] = Field(default_factory=list)
    highlighted_phrases: List[HighlightSpan] = Field(
        default_factory=list, alias="highlightedPhrases"
    )
    indicators: Indicators = Field(default_factory=Indicators)


class TextSegment(BaseModel):
    text: str
    highlight: Optional[HighlightSpan] = None


class AnalysisReport(BaseModel):
    result: AnalysisResult
    subject_segments: List[TextSegment] = Field(default_factory=list)
    body_segments: List[TextSegment] = Field(default_factory=list)


class DashboardStat(BaseModel):
    label: str
    legitimate_count: int = Field(ge=0)
    phishing_count: int = Field(ge=0)


class DashboardSummary(BaseModel):
    total_scanned: int = Field(ge=0)
    phishing_detected: int = Field(ge=0)
    detection_rate: float = Field(ge=0.0, le=100.0)
    accuracy_rate: float = Field(ge=0.0, le=100.0)


class HistoryItem(BaseModel):
    id: str
    subject: str
    date: str
    label: Prediction
    confidence: int = Field(ge=0, le=100)
