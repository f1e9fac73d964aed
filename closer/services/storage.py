"""Storage ports used by the services, plus in-memory implementations.

Services receive these objects as constructor arguments; they never reach
for a module-level database handle. :mod:`closer.db.repository` provides
the SQLAlchemy-backed versions.
"""
from typing import Dict, List, Optional, Protocol, Tuple

from closer.models import AnswerRecord, PlayQuota, ReviewState, RunResult
from closer.services.leaderboard import rank_results


class ReviewStateStore(Protocol):
    def get(self, learner_id: str, card_id: str) -> Optional[ReviewState]:
        """Stored state, or None for a card the learner never reviewed."""

    def put(self, learner_id: str, card_id: str, state: ReviewState) -> None:
        """Overwrite the state for this key."""


class AnswerLogStore(Protocol):
    def append(self, learner_id: str, record: AnswerRecord) -> None:
        ...

    def history(self, learner_id: str) -> List[AnswerRecord]:
        """All answers of a learner, most recent first."""


class RunResultStore(Protocol):
    def add(self, result: RunResult) -> None:
        ...

    def ranked(self, limit: int) -> List[RunResult]:
        """Best runs: score desc, elapsed time asc."""


class PlayQuotaStore(Protocol):
    def get(self, learner_id: str) -> Optional[PlayQuota]:
        ...

    def put(self, learner_id: str, quota: PlayQuota) -> None:
        ...


class InMemoryReviewStateStore:
    def __init__(self):
        self._states: Dict[Tuple[str, str], ReviewState] = {}

    def get(self, learner_id: str, card_id: str) -> Optional[ReviewState]:
        return self._states.get((learner_id, card_id))

    def put(self, learner_id: str, card_id: str, state: ReviewState) -> None:
        self._states[(learner_id, card_id)] = state


class InMemoryAnswerLogStore:
    def __init__(self):
        self._logs: Dict[str, List[AnswerRecord]] = {}

    def append(self, learner_id: str, record: AnswerRecord) -> None:
        self._logs.setdefault(learner_id, []).append(record)

    def history(self, learner_id: str) -> List[AnswerRecord]:
        return list(reversed(self._logs.get(learner_id, [])))


class InMemoryRunResultStore:
    def __init__(self):
        self._results: List[RunResult] = []

    def add(self, result: RunResult) -> None:
        self._results.append(result)

    def ranked(self, limit: int) -> List[RunResult]:
        return rank_results(self._results, limit)


class InMemoryPlayQuotaStore:
    def __init__(self):
        self._quotas: Dict[str, PlayQuota] = {}

    def get(self, learner_id: str) -> Optional[PlayQuota]:
        return self._quotas.get(learner_id)

    def put(self, learner_id: str, quota: PlayQuota) -> None:
        self._quotas[learner_id] = quota
