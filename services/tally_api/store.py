"""
In-memory vote tally shared by every request handler.

The tally maps candidate IDs to vote counts. Writes (votes) take the lock
exclusively, reads (stats queries) share it, so many stats queries can run
in parallel while votes are serialized.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

logger = logging.getLogger(__name__)


class CandidateNotFoundError(KeyError):
    """Raised when a candidate has never received a vote."""

    def __init__(self, candidate_id: int):
        super().__init__(candidate_id)
        self.candidate_id = candidate_id

    def __str__(self) -> str:
        return f"no data for candidate with id {self.candidate_id}"


class ReadWriteLock:
    """Readers-writer lock built on a single condition variable.

    Any number of readers may hold the lock at once; a writer holds it alone.
    Once a writer is waiting, new readers queue behind it.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self):
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class VoteStore:
    """Thread-safe registry of vote counts keyed by candidate ID."""

    def __init__(self):
        """Initialize an empty tally."""
        self._lock = ReadWriteLock()
        self._tally: Dict[int, int] = {}

    def record_vote(self, candidate_id: int) -> None:
        """
        Add one vote for a candidate.

        The candidate is inserted with a count of 1 on its first vote.
        Callers are expected to have validated the ID already.

        Args:
            candidate_id: Positive candidate identifier
        """
        with self._lock.write_locked():
            self._tally[candidate_id] = self._tally.get(candidate_id, 0) + 1
            count = self._tally[candidate_id]

        logger.debug(f"Vote recorded: candidate={candidate_id}, votes={count}")

    def read_all(self) -> Dict[int, int]:
        """
        Get a point-in-time copy of the whole tally.

        Returns:
            Dict[int, int]: candidate ID -> vote count; safe to mutate
        """
        with self._lock.read_locked():
            return dict(self._tally)

    def read_one(self, candidate_id: int) -> int:
        """
        Get the vote count for one candidate.

        Args:
            candidate_id: Candidate identifier

        Returns:
            int: Number of votes recorded for the candidate

        Raises:
            CandidateNotFoundError: The candidate has no recorded votes
        """
        with self._lock.read_locked():
            try:
                return self._tally[candidate_id]
            except KeyError:
                raise CandidateNotFoundError(candidate_id) from None

    def total_votes(self) -> int:
        """Sum of votes across all candidates."""
        with self._lock.read_locked():
            return sum(self._tally.values())

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._tally)
