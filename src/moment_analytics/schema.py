"""
Moment analytics data models.

Dataclass schemas for interaction and outcome events, effectiveness
statistics, funnel steps, A/B test results, cohorts and personalization
reports.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd


class InteractionType(str, Enum):
    """Low-level user action against a moment."""
    VIEW = "view"
    CLICK = "click"
    CONVERSION = "conversion"
    DISMISS = "dismiss"
    ENGAGEMENT = "engagement"


class OutcomeType(str, Enum):
    """Downstream business result attributed to a moment."""
    CONVERSION = "conversion"
    ENGAGEMENT = "engagement"
    BOUNCE = "bounce"
    ERROR = "error"


class GroupBy(str, Enum):
    """Cohort bucket length."""
    WEEK = "week"
    MONTH = "month"


class Variant(str, Enum):
    """A/B test arm."""
    A = "A"
    B = "B"


class Winner(str, Enum):
    """A/B test verdict."""
    A = "A"
    B = "B"
    INCONCLUSIVE = "inconclusive"


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO string or datetime into a naive UTC datetime.

    Raises:
        ValueError: if the value cannot be parsed
    """
    if isinstance(value, datetime) and value.tzinfo is None:
        return value
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Unparseable timestamp: {value!r}") from e
    if ts is pd.NaT:
        raise ValueError(f"Unparseable timestamp: {value!r}")
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.to_pydatetime()


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in data:
            return data[k]
    return default


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


_KNOWN_METADATA_KEYS = {"step", "personalized", "campaign_id", "campaignId"}


@dataclass(frozen=True)
class InteractionMetadata:
    """Typed interaction metadata plus an opaque extension map."""
    step: Optional[str] = None
    personalized: bool = False
    campaign_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "InteractionMetadata":
        if not data:
            return cls()
        step = data.get("step")
        return cls(
            step=str(step) if step is not None else None,
            personalized=data.get("personalized") is True,
            campaign_id=_pick(data, "campaign_id", "campaignId"),
            extra={k: v for k, v in data.items() if k not in _KNOWN_METADATA_KEYS},
        )

    def to_dict(self) -> Dict[str, Any]:
        d = dict(self.extra)
        if self.step is not None:
            d["step"] = self.step
        if self.campaign_id is not None:
            d["campaign_id"] = self.campaign_id
        d["personalized"] = self.personalized
        return d


@dataclass(frozen=True)
class Interaction:
    """A user action against a moment. Immutable once recorded."""
    moment_id: str
    user_id: str
    session_id: str
    timestamp: datetime
    type: InteractionType
    value: Optional[float] = None
    metadata: InteractionMetadata = field(default_factory=InteractionMetadata)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Interaction":
        """Build from a JSON payload (snake_case or camelCase keys)."""
        metadata = data.get("metadata")
        if isinstance(metadata, InteractionMetadata):
            meta = metadata
        else:
            meta = InteractionMetadata.from_mapping(metadata)
        return cls(
            moment_id=str(_pick(data, "moment_id", "momentId", default="")),
            user_id=str(_pick(data, "user_id", "userId", default="")),
            session_id=str(_pick(data, "session_id", "sessionId", default="")),
            timestamp=parse_timestamp(data.get("timestamp")),
            type=InteractionType(data.get("type")),
            value=_optional_float(data.get("value")),
            metadata=meta,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "moment_id": self.moment_id,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "timestamp": self.timestamp.isoformat(),
            "type": self.type.value,
            "value": self.value,
            "metadata": self.metadata.to_dict(),
        }


@dataclass(frozen=True)
class Outcome:
    """A business result attributed to a moment. Immutable once recorded."""
    moment_id: str
    user_id: str
    decision_id: str
    outcome_type: OutcomeType
    value: float
    timestamp: datetime
    conversion_path: List[str] = field(default_factory=list)
    time_to_conversion: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Outcome":
        """Build from a JSON payload (snake_case or camelCase keys)."""
        value = _optional_float(data.get("value"))
        return cls(
            moment_id=str(_pick(data, "moment_id", "momentId", default="")),
            user_id=str(_pick(data, "user_id", "userId", default="")),
            decision_id=str(_pick(data, "decision_id", "decisionId", default="")),
            outcome_type=OutcomeType(_pick(data, "outcome_type", "outcomeType")),
            value=value if value is not None else 0.0,
            timestamp=parse_timestamp(data.get("timestamp")),
            conversion_path=[str(s) for s in _pick(data, "conversion_path", "conversionPath", default=[]) or []],
            time_to_conversion=_optional_float(
                _pick(data, "time_to_conversion", "timeToConversion")
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "moment_id": self.moment_id,
            "user_id": self.user_id,
            "decision_id": self.decision_id,
            "outcome_type": self.outcome_type.value,
            "value": self.value,
            "timestamp": self.timestamp.isoformat(),
            "conversion_path": list(self.conversion_path),
            "time_to_conversion": self.time_to_conversion,
        }


@dataclass
class UserRetention:
    """Share of users (percent) returning within 1/7/30 days of first visit."""
    day1: float = 0.0
    day7: float = 0.0
    day30: float = 0.0


@dataclass
class EffectivenessStats:
    """Snapshot of one moment's effectiveness, computed at query time."""
    moment_id: str
    total_views: int = 0
    total_clicks: int = 0
    total_conversions: int = 0
    click_through_rate: float = 0.0
    conversion_rate: float = 0.0  # may exceed 100 when conversions > clicks
    average_engagement_time: float = 0.0
    bounce_rate: float = 0.0
    revenue_attribution: float = 0.0
    user_retention: UserRetention = field(default_factory=UserRetention)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DropoffReason:
    reason: str
    count: int


@dataclass
class FunnelStep:
    """Per-step funnel result. total_users is the eligible population."""
    step_name: str
    total_users: int
    converted_users: int
    conversion_rate: float
    average_time_in_step: float
    dropoff_reasons: List[DropoffReason] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class VariantResult:
    """One arm of an A/B test."""
    moment_id: str
    stats: EffectivenessStats
    sample_size: int = 0


@dataclass(frozen=True)
class ABTestResult:
    """
    Versioned A/B test record.

    Each analysis installs a new record with version + 1; records are never
    mutated in place.
    """
    test_id: str
    variant_a: VariantResult
    variant_b: VariantResult
    traffic_split: float = 0.5
    planned_sample_size: int = 0
    significance: float = 0.0
    confidence_level: float = 95.0
    winner: Winner = Winner.INCONCLUSIVE

    # Diagnostics, reported alongside the verdict
    p_value: Optional[float] = None
    srm_passed: bool = True
    analysis_count: int = 0
    peek_warning: str = ""

    version: int = 0
    analyzed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "test_id": self.test_id,
            "variant_a": {
                "moment_id": self.variant_a.moment_id,
                "stats": self.variant_a.stats.to_dict(),
                "sample_size": self.variant_a.sample_size,
            },
            "variant_b": {
                "moment_id": self.variant_b.moment_id,
                "stats": self.variant_b.stats.to_dict(),
                "sample_size": self.variant_b.sample_size,
            },
            "traffic_split": self.traffic_split,
            "planned_sample_size": self.planned_sample_size,
            "significance": self.significance,
            "confidence_level": self.confidence_level,
            "winner": self.winner.value,
            "p_value": self.p_value,
            "srm_passed": self.srm_passed,
            "analysis_count": self.analysis_count,
            "peek_warning": self.peek_warning,
            "version": self.version,
            "analyzed_at": self.analyzed_at.isoformat() if self.analyzed_at else None,
        }


@dataclass
class CohortPeriod:
    period: int
    users: int
    percentage: float


@dataclass
class Cohort:
    """Users active in one week/month bucket and their retention curve."""
    cohort: str
    total_users: int
    retention: List[CohortPeriod] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PersonalizationEffectiveness:
    personalized_moments: int = 0
    generic_moments: int = 0
    personalized_conversion_rate: float = 0.0
    generic_conversion_rate: float = 0.0
    lift: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MomentComparison:
    """Ranked side-by-side metrics for one moment."""
    moment_id: str
    metrics: Dict[str, float]
    rank: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
