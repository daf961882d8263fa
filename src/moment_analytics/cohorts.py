"""
Cohort retention analysis.

Users are bucketed into every ISO week (or calendar month) in which they
interacted, so one user can belong to several cohorts. This is distinct from
the first-visit-anchored retention in effectiveness.py and is kept separate.

For each cohort, retention is the share of its users with any visit in each
of the following periods of cohort length, starting at the cohort start.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Union

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .effectiveness import rate
from .event_store import EventStore
from .schema import Cohort, CohortPeriod, GroupBy
from .visit_ledger import VisitLedger

logger = logging.getLogger(__name__)


def cohort_key(timestamp: datetime, group_by: GroupBy) -> str:
    """ISO week key 'YYYY-Www' or month key 'YYYY-MM'."""
    if group_by == GroupBy.WEEK:
        iso_year, iso_week, _ = timestamp.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    return f"{timestamp.year}-{timestamp.month:02d}"


def cohort_start(key: str, group_by: GroupBy) -> datetime:
    """Monday of the ISO week, or first day of the month, at midnight."""
    if group_by == GroupBy.WEEK:
        year, week = key.split("-W")
        return datetime.fromisocalendar(int(year), int(week), 1)
    year, month = key.split("-")
    return datetime(int(year), int(month), 1)


def period_days(group_by: GroupBy, config: Optional[AnalyticsConfig] = None) -> int:
    config = config or DEFAULT_CONFIG
    return config.week_period_days if group_by == GroupBy.WEEK else config.month_period_days


def cohort_retention(
    ledger: VisitLedger,
    user_ids: Iterable[str],
    start: datetime,
    group_by: GroupBy,
    config: Optional[AnalyticsConfig] = None,
) -> List[CohortPeriod]:
    """
    Active users per period for [start + k*len, start + (k+1)*len).

    Returns:
        One CohortPeriod per configured period (12 by default)
    """
    config = config or DEFAULT_CONFIG
    users = list(user_ids)
    length = timedelta(days=period_days(group_by, config))
    visits = {u: ledger.visits(u) for u in users}

    retention = []
    for period in range(config.cohort_periods):
        period_start = start + period * length
        period_end = period_start + length
        active = sum(
            1 for u in users
            if any(period_start <= v < period_end for v in visits[u])
        )
        retention.append(CohortPeriod(
            period=period,
            users=active,
            percentage=rate(active, len(users)),
        ))
    return retention


def get_cohort_analysis(
    store: EventStore,
    start_date: datetime,
    end_date: datetime,
    group_by: Union[GroupBy, str] = GroupBy.WEEK,
    config: Optional[AnalyticsConfig] = None,
) -> List[Cohort]:
    """
    Cohort retention over interactions in [start_date, end_date].

    Args:
        store: Event store (its visit ledger supplies the activity history)
        start_date: Inclusive window start
        end_date: Inclusive window end
        group_by: 'week' or 'month'

    Returns:
        Cohorts sorted by key
    """
    group_by = GroupBy(group_by)
    df = store.interactions_frame(start_date=start_date, end_date=end_date)
    if df.empty:
        return []

    df["cohort"] = [cohort_key(ts.to_pydatetime(), group_by) for ts in df["timestamp"]]
    members = df.groupby("cohort")["user_id"].unique()

    cohorts = []
    for key, users in members.sort_index().items():
        users = sorted(users)
        cohorts.append(Cohort(
            cohort=key,
            total_users=len(users),
            retention=cohort_retention(
                store.ledger, users, cohort_start(key, group_by), group_by, config
            ),
        ))

    logger.info(
        f"Cohort analysis ({group_by.value}) {start_date:%Y-%m-%d}..{end_date:%Y-%m-%d}: "
        f"{len(cohorts)} cohorts"
    )
    return cohorts
