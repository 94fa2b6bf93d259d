"""
Vote tally API service.

An HTTP service that records votes for numeric candidate IDs and reports
the current totals from an in-memory, thread-safe tally.
"""

from .store import CandidateNotFoundError, ReadWriteLock, VoteStore

__all__ = [
    'CandidateNotFoundError',
    'ReadWriteLock',
    'VoteStore',
]

__version__ = '1.0.0'
