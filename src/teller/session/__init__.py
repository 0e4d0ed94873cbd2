"""Session persistence."""

from .store import Session, SessionConfig, SessionStore

__all__ = ["Session", "SessionConfig", "SessionStore"]
