"""
Data management infrastructure for interview sessions.
"""

from .conversations import InterviewSessionRecord
from .sessions import SessionStore, SessionNotFound

__all__ = [
    'InterviewSessionRecord',
    'SessionStore',
    'SessionNotFound',
]
