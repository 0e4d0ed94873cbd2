"""File-backed store for per-identity authentication sessions."""

import json
import logging
import os
import tempfile
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from ..logging import JSONLLogger, get_logger

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Session:
    """Authenticated state for one identity key."""

    identity_key: str
    session_id: str
    created_at: str = field(default_factory=_now)
    last_accessed: str = field(default_factory=_now)
    access_token: str | None = None
    access_token_id: str | None = None
    expire_at: str | None = None
    user: dict[str, Any] = field(default_factory=dict)

    @property
    def organization_id(self) -> str | None:
        return self.user.get("organizationId")

    @property
    def display_name(self) -> str:
        return f"{self.user.get('firstName', '')} {self.user.get('lastName', '')}".strip()

    def to_dict(self) -> dict[str, Any]:
        """Convert to the on-disk JSON representation."""
        return {
            "identityKey": self.identity_key,
            "sessionId": self.session_id,
            "createdAt": self.created_at,
            "lastAccessed": self.last_accessed,
            "accessToken": self.access_token,
            "accessTokenId": self.access_token_id,
            "expireAt": self.expire_at,
            "user": self.user,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        """Create from the on-disk JSON representation."""
        return cls(
            identity_key=data["identityKey"],
            session_id=data["sessionId"],
            created_at=data.get("createdAt") or _now(),
            last_accessed=data.get("lastAccessed") or _now(),
            access_token=data.get("accessToken"),
            access_token_id=data.get("accessTokenId"),
            expire_at=data.get("expireAt"),
            user=data.get("user") or {},
        )


@dataclass
class SessionConfig:
    """Configuration for the session store."""

    sessions_dir: Path | None = None

    def __post_init__(self) -> None:
        if self.sessions_dir is None:
            self.sessions_dir = Path.home() / ".teller" / "sessions"


class SessionStore:
    """Persists one session file per identity key.

    The identity -> filename index is rebuilt from the sessions directory once,
    at construction, and is the only lookup source afterwards. Files written by
    anything other than this store are not seen until the next restart. The
    store assumes a single owning process.
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        json_logger: JSONLLogger | None = None,
    ) -> None:
        self.config = config or SessionConfig()
        assert self.config.sessions_dir is not None
        self.sessions_dir: Path = self.config.sessions_dir
        self.sessions_dir.mkdir(parents=True, exist_ok=True)
        self.json_logger = json_logger or get_logger()
        self._index: dict[str, str] = {}
        self._load_index()

    def _scan(self) -> Iterator[tuple[str, Path]]:
        """Yield (identity key, path) for every readable session file, oldest first."""
        for path in sorted(self.sessions_dir.glob("*.json"), key=lambda p: p.stat().st_mtime):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Skipping unreadable session file %s: %s", path.name, e)
                continue

            identity_key = data.get("identityKey") if isinstance(data, dict) else None
            if identity_key:
                yield identity_key, path

    def _load_index(self) -> None:
        """Scan the sessions directory and map identity keys to filenames."""
        for identity_key, path in self._scan():
            self._index[identity_key] = path.name

    def _path(self, filename: str) -> Path:
        return self.sessions_dir / filename

    def _read(self, filename: str) -> dict[str, Any]:
        with open(self._path(filename), "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("session file does not contain an object")
        return data

    def _write(self, filename: str, data: dict[str, Any]) -> None:
        """Write session data atomically (temp file, then rename)."""
        fd, tmp_name = tempfile.mkstemp(dir=self.sessions_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self._path(filename))
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def create(self, identity_key: str, initial_fields: dict[str, Any] | None = None) -> str:
        """Create a session, replacing any current one for identity_key.

        The previous session file, if any, is left on disk but is no longer
        reachable.

        Returns:
            The new session id.
        """
        session_id = str(uuid.uuid4())
        filename = f"{session_id}.json"
        now = _now()
        data: dict[str, Any] = {"createdAt": now, "lastAccessed": now}
        data.update(initial_fields or {})
        data["identityKey"] = identity_key
        data["sessionId"] = session_id

        self._write(filename, data)
        self._index[identity_key] = filename
        self.json_logger.log_session("created", identity_key, session_id)
        return session_id

    def get(self, identity_key: str) -> Session | None:
        """Return the current session and refresh its last-access time."""
        filename = self._index.get(identity_key)
        if filename is None:
            return None

        try:
            data = self._read(filename)
            data["lastAccessed"] = _now()
            session = Session.from_dict(data)
        except (OSError, ValueError, KeyError) as e:
            logger.warning("Dropping unreadable session for %s: %s", identity_key, e)
            self._index.pop(identity_key, None)
            self.json_logger.log("session_repaired", identity_key=identity_key, error=str(e))
            return None

        try:
            self._write(filename, data)
        except OSError as e:
            logger.warning("Could not refresh last access for %s: %s", identity_key, e)
        return session

    def update(self, identity_key: str, partial_fields: dict[str, Any]) -> bool:
        """Merge fields into the current session. False if there is none."""
        filename = self._index.get(identity_key)
        if filename is None:
            return False

        try:
            data = self._read(filename)
        except (OSError, ValueError) as e:
            logger.warning("Cannot update session for %s: %s", identity_key, e)
            return False

        data.update(partial_fields)
        data["identityKey"] = identity_key
        data["lastAccessed"] = _now()
        self._write(filename, data)
        return True

    def delete(self, identity_key: str) -> bool:
        """Remove the session file and its index entry.

        Files left behind by earlier ``create`` calls for the same identity
        are removed too, so a restart cannot bring an old session back.
        """
        filename = self._index.pop(identity_key, None)
        if filename is None:
            return False

        path = self._path(filename)
        if path.exists():
            path.unlink()
        for key, stale in self._scan():
            if key == identity_key:
                stale.unlink(missing_ok=True)
        self.json_logger.log_session("deleted", identity_key, filename.removesuffix(".json"))
        return True

    def get_access_token(self, identity_key: str) -> str | None:
        """Return the access token of the current session, if any."""
        session = self.get(identity_key)
        return session.access_token if session else None

    def identities(self) -> list[str]:
        """List identity keys with an indexed session."""
        return list(self._index.keys())
