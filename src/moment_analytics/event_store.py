"""
In-memory event store for moment interactions and outcomes.

Append-only per-moment collections with time-window readers returning
DataFrames, a summary helper and a CSV snapshot export. Every recorded
interaction is also written to the visit ledger, and both record types are
announced on the notification bus after the append.
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from .notifications import INTERACTION_RECORDED, OUTCOME_RECORDED, NotificationBus
from .schema import Interaction, InteractionType, Outcome
from .visit_ledger import VisitLedger

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_DIR = "artifacts/moments"

INTERACTION_COLUMNS = [
    "moment_id", "user_id", "session_id", "timestamp", "type", "value",
    "step", "personalized", "campaign_id",
]
OUTCOME_COLUMNS = [
    "moment_id", "user_id", "decision_id", "outcome_type", "value",
    "timestamp", "conversion_path", "time_to_conversion",
]


def _ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def _interaction_to_row(evt: Interaction) -> dict:
    return {
        "moment_id": evt.moment_id,
        "user_id": evt.user_id,
        "session_id": evt.session_id,
        "timestamp": evt.timestamp,
        "type": evt.type.value,
        "value": evt.value,
        "step": evt.metadata.step,
        "personalized": evt.metadata.personalized,
        "campaign_id": evt.metadata.campaign_id,
    }


def _outcome_to_row(evt: Outcome) -> dict:
    return {
        "moment_id": evt.moment_id,
        "user_id": evt.user_id,
        "decision_id": evt.decision_id,
        "outcome_type": evt.outcome_type.value,
        "value": evt.value,
        "timestamp": evt.timestamp,
        "conversion_path": ">".join(evt.conversion_path),
        "time_to_conversion": evt.time_to_conversion,
    }


def _to_frame(rows: List[dict], columns: List[str], start_date, end_date) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=columns)
    if df.empty:
        return df
    df["timestamp"] = pd.to_datetime(df["timestamp"])
    if start_date is not None:
        df = df[df["timestamp"] >= start_date]
    if end_date is not None:
        df = df[df["timestamp"] <= end_date]
    return df.reset_index(drop=True)


class EventStore:
    """
    Append-only holder of interactions and outcomes keyed by moment_id.

    Writers take a per-moment lock, so appends to distinct moments never
    contend. Readers copy the current list without locking; records are
    frozen, so a reader sees a prefix of the stream and never a partial
    record.
    """

    def __init__(
        self,
        ledger: Optional[VisitLedger] = None,
        bus: Optional[NotificationBus] = None,
    ) -> None:
        self.ledger = ledger if ledger is not None else VisitLedger()
        self.bus = bus if bus is not None else NotificationBus()
        self._interactions: Dict[str, List[Interaction]] = {}
        self._outcomes: Dict[str, List[Outcome]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _moment_lock(self, moment_id: str) -> threading.Lock:
        lock = self._locks.get(moment_id)
        if lock is None:
            with self._registry_lock:
                # lists must exist before the lock is visible to lock-free readers
                self._interactions.setdefault(moment_id, [])
                self._outcomes.setdefault(moment_id, [])
                lock = self._locks.setdefault(moment_id, threading.Lock())
        return lock

    # -- ingestion -----------------------------------------------------------

    def record_interaction(self, interaction: Interaction) -> None:
        """Append an interaction, log the visit, then notify subscribers."""
        with self._moment_lock(interaction.moment_id):
            self._interactions[interaction.moment_id].append(interaction)
        self.ledger.record_visit(interaction.user_id, interaction.timestamp)
        logger.debug(
            f"Recorded {interaction.type.value} for moment {interaction.moment_id} "
            f"user {interaction.user_id}"
        )
        self.bus.publish(INTERACTION_RECORDED, interaction)

    def record_outcome(self, outcome: Outcome) -> None:
        """Append an outcome, then notify subscribers."""
        with self._moment_lock(outcome.moment_id):
            self._outcomes[outcome.moment_id].append(outcome)
        logger.debug(
            f"Recorded {outcome.outcome_type.value} outcome for moment {outcome.moment_id}"
        )
        self.bus.publish(OUTCOME_RECORDED, outcome)

    # -- snapshot reads ------------------------------------------------------

    def interactions(self, moment_id: str) -> Tuple[Interaction, ...]:
        return tuple(self._interactions.get(moment_id, ()))

    def outcomes(self, moment_id: str) -> Tuple[Outcome, ...]:
        return tuple(self._outcomes.get(moment_id, ()))

    def moment_ids(self) -> List[str]:
        return list(self._interactions.keys())

    def all_interactions(self) -> List[Interaction]:
        """All interactions, grouped by moment in first-seen moment order."""
        result: List[Interaction] = []
        for moment_id in self.moment_ids():
            result.extend(self.interactions(moment_id))
        return result

    def all_outcomes(self) -> List[Outcome]:
        result: List[Outcome] = []
        for moment_id in self.moment_ids():
            result.extend(self.outcomes(moment_id))
        return result

    def interaction_count(self, moment_id: str) -> int:
        return len(self._interactions.get(moment_id, ()))

    def interactions_frame(
        self,
        moment_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> pd.DataFrame:
        """
        Read interactions as a DataFrame, optionally filtered by moment and time.

        Args:
            moment_id: Restrict to one moment (all moments when None)
            start_date: Optional inclusive start of time window
            end_date: Optional inclusive end of time window

        Returns:
            DataFrame with INTERACTION_COLUMNS
        """
        events = self.interactions(moment_id) if moment_id else self.all_interactions()
        rows = [_interaction_to_row(e) for e in events]
        return _to_frame(rows, INTERACTION_COLUMNS, start_date, end_date)

    def outcomes_frame(
        self,
        moment_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> pd.DataFrame:
        """Read outcomes as a DataFrame, optionally filtered by moment and time."""
        events = self.outcomes(moment_id) if moment_id else self.all_outcomes()
        rows = [_outcome_to_row(e) for e in events]
        return _to_frame(rows, OUTCOME_COLUMNS, start_date, end_date)

    def get_store_summary(self, moment_id: str) -> dict:
        """
        Get summary counts for a moment.

        Returns:
            Dict with n_interactions, n_outcomes, n_users, by_type
        """
        interactions = self.interactions(moment_id)
        outcomes = self.outcomes(moment_id)
        by_type = {t.value: 0 for t in InteractionType}
        for i in interactions:
            by_type[i.type.value] += 1
        return {
            "moment_id": moment_id,
            "n_interactions": len(interactions),
            "n_outcomes": len(outcomes),
            "n_users": len({i.user_id for i in interactions}),
            "by_type": by_type,
        }

    def export_events(self, out_dir: str = DEFAULT_EXPORT_DIR) -> Dict[str, Path]:
        """
        Write a CSV snapshot of all interactions and outcomes.

        Returns:
            Dict with paths of interactions.csv and outcomes.csv
        """
        base = _ensure_dir(Path(out_dir))
        paths = {
            "interactions": base / "interactions.csv",
            "outcomes": base / "outcomes.csv",
        }
        interactions = self.interactions_frame()
        outcomes = self.outcomes_frame()
        interactions.to_csv(paths["interactions"], index=False)
        outcomes.to_csv(paths["outcomes"], index=False)
        logger.info(
            f"Exported {len(interactions)} interactions and {len(outcomes)} outcomes to {base}"
        )
        return paths
