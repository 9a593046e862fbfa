"""Memory-service observation source.

Two transports:
1. HTTP worker API (preferred), probed via `/api/stats`
2. Direct read-only SQLite access to the service database (fallback)

Both wire shapes are normalized once, here, by `normalize_observation`.
"""

import json
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import httpx
import structlog

from cli.retry import http_retry
from db import readonly_connect
from shared_types import AvailabilityMode, ObservationType
from timeline.dates import end_of_day_ms, start_of_day_ms
from timeline.models import Observation

logger = structlog.get_logger().bind(source="memory_service")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 37777
DEFAULT_DATA_DIR = Path("~/.claude-mem")
DB_FILENAME = "claude-mem.db"
DEFAULT_LIMIT = 1000

_OBSERVATION_COLUMNS = """
    o.id, o.memory_session_id, o.type, o.title, o.subtitle, o.narrative,
    o.facts, o.concepts, o.files_read, o.files_modified, o.prompt_number,
    o.created_at, o.created_at_epoch, s.project
"""


class ObservationFetchError(Exception):
    """Observation retrieval failed and no fallback transport was available."""


@dataclass
class Availability:
    api: bool
    db: bool
    mode: AvailabilityMode

    @classmethod
    def from_flags(cls, api: bool, db: bool) -> "Availability":
        if api and db:
            mode = AvailabilityMode.FULL
        elif api:
            mode = AvailabilityMode.API_ONLY
        elif db:
            mode = AvailabilityMode.DB_ONLY
        else:
            mode = AvailabilityMode.UNAVAILABLE
        return cls(api=api, db=db, mode=mode)


def _first(raw: dict, *keys: str) -> Any:
    """First non-empty value among snake_case / camelCase variants."""
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _json_list(value: Any) -> Optional[list[str]]:
    if not value:
        return None
    if isinstance(value, list):
        return [str(v) for v in value]
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return None
        return [str(v) for v in parsed] if isinstance(parsed, list) else None
    return None


def _epoch_from_iso(value: str) -> int:
    try:
        return int(datetime.fromisoformat(value).timestamp() * 1000)
    except (TypeError, ValueError):
        return 0


def normalize_observation(raw: dict) -> Observation:
    """Build an Observation from either the API (camelCase or snake_case) or a DB row."""
    try:
        obs_type = ObservationType(raw.get("type") or ObservationType.CHANGE)
    except ValueError:
        obs_type = ObservationType.CHANGE

    created_at = _first(raw, "created_at", "createdAt") or ""
    epoch = _first(raw, "created_at_epoch", "createdAtEpoch")
    prompt_number = _first(raw, "prompt_number", "promptNumber")

    return Observation(
        id=int(raw.get("id") or 0),
        session_id=_first(raw, "memory_session_id", "memorySessionId") or "",
        project=raw.get("project") or "",
        type=obs_type,
        title=raw.get("title") or None,
        subtitle=raw.get("subtitle") or None,
        narrative=raw.get("narrative") or None,
        facts=_json_list(raw.get("facts")),
        concepts=_json_list(raw.get("concepts")),
        files_read=_json_list(_first(raw, "files_read", "filesRead")),
        files_modified=_json_list(_first(raw, "files_modified", "filesModified")),
        prompt_number=int(prompt_number) if prompt_number is not None else None,
        created_at=created_at,
        created_at_epoch=int(epoch) if epoch else _epoch_from_iso(created_at),
    )


def load_service_settings(settings_path: str | Path) -> dict:
    """Read the memory service's own settings.json, if present."""
    path = Path(settings_path).expanduser()
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("memory_settings_unreadable", path=str(path), error=str(e))
        return {}
    return data if isinstance(data, dict) else {}


class MemoryServiceClient:
    """Read-only client over the memory service's HTTP API and database."""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        db_path: str | Path = DEFAULT_DATA_DIR / DB_FILENAME,
        timeout: float = 2.0,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = f"http://{host}:{port}"
        self.db_path = Path(db_path).expanduser()
        self.timeout = timeout
        self.client = client or httpx.Client(base_url=self.base_url, timeout=timeout)
        self._conn: Optional[sqlite3.Connection] = None

    @classmethod
    def from_config(cls, memory_config) -> "MemoryServiceClient":
        """Build from a MemoryConfig, letting the service's settings.json override it."""
        settings = load_service_settings(memory_config.settings_path)
        data_dir = Path(settings.get("CLAUDE_MEM_DATA_DIR") or memory_config.data_dir)
        return cls(
            host=settings.get("CLAUDE_MEM_WORKER_HOST") or memory_config.host,
            port=int(settings.get("CLAUDE_MEM_WORKER_PORT") or memory_config.port),
            db_path=data_dir / DB_FILENAME,
            timeout=memory_config.timeout,
        )

    # ── availability ──

    def api_available(self) -> bool:
        try:
            response = self.client.get("/api/stats", timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.debug("memory_api_unreachable", url=self.base_url, error=str(e))
            return False
        return response.is_success

    def db_available(self) -> bool:
        return self.db_path.exists()

    def availability(self) -> Availability:
        return Availability.from_flags(self.api_available(), self.db_available())

    # ── observations ──

    def fetch_observations(
        self,
        date_start: Optional[str] = None,
        date_end: Optional[str] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[Observation]:
        """Observations created within [date_start, date_end] (local days, inclusive).

        Falls back from API to database. Raises ObservationFetchError when the
        transport in use fails and nothing is left to fall back to.
        """
        status = self.availability()

        if status.api:
            try:
                return self._search_via_api(date_start, date_end, limit)
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("memory_api_search_failed", error=str(e), fallback=status.db)
                if not status.db:
                    raise ObservationFetchError(f"Memory service request failed: {e}") from e

        if status.db:
            try:
                return self._search_via_db(date_start, date_end, limit)
            except sqlite3.Error as e:
                logger.warning("memory_db_read_failed", path=str(self.db_path), error=str(e))
                raise ObservationFetchError(f"Memory database read failed: {e}") from e

        return []

    def get_daily_observations(self, day: str) -> list[Observation]:
        return self.fetch_observations(day, day)

    def get_projects(self) -> list[str]:
        status = self.availability()
        if status.api:
            try:
                return list(self._get_json("/api/projects").get("projects") or [])
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("memory_api_projects_failed", error=str(e))
        if status.db:
            try:
                rows = self._connect().execute(
                    "SELECT DISTINCT project FROM sdk_sessions WHERE project IS NOT NULL"
                ).fetchall()
                return [row["project"] for row in rows]
            except sqlite3.Error as e:
                logger.warning("memory_db_projects_failed", error=str(e))
        return []

    @http_retry(max_attempts=2, min_wait=0.2, max_wait=1.0, exceptions=(httpx.TransportError,))
    def _get_json(self, path: str, params: Optional[dict] = None) -> dict:
        response = self.client.get(path, params=params)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected response shape from {path}")
        return data

    def _search_via_api(
        self, date_start: Optional[str], date_end: Optional[str], limit: int
    ) -> list[Observation]:
        params = {"type": "observations", "limit": limit}
        if date_start:
            params["dateStart"] = date_start
        if date_end:
            params["dateEnd"] = date_end
        data = self._get_json("/api/search", params=params)
        raw = data.get("observations") or data.get("results") or []
        return [normalize_observation(item) for item in raw if isinstance(item, dict)]

    def _search_via_db(
        self, date_start: Optional[str], date_end: Optional[str], limit: int
    ) -> list[Observation]:
        sql = (
            f"SELECT {_OBSERVATION_COLUMNS} FROM observations o "
            "JOIN sdk_sessions s ON o.memory_session_id = s.memory_session_id WHERE 1=1"
        )
        params: list = []
        if date_start:
            sql += " AND o.created_at_epoch >= ?"
            params.append(start_of_day_ms(date_start))
        if date_end:
            sql += " AND o.created_at_epoch <= ?"
            params.append(end_of_day_ms(date_end))
        sql += " ORDER BY o.created_at_epoch ASC"
        if limit:
            sql += " LIMIT ?"
            params.append(int(limit))

        rows = self._connect().execute(sql, params).fetchall()
        return [normalize_observation(dict(row)) for row in rows]

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = readonly_connect(self.db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
