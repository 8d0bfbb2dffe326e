"""
Scan history storage.

Append-only table of past evaluations with cursor pagination, point
lookup, delete and aggregate counts. Two backends share one contract:

- SqlRecordStore: SQLAlchemy, any database the engine URL points at
- MockRecordStore: in-process fixture data, used when no database is
  configured

ResilientRecordStore fronts the SQL backend and drops to the mock the
first time the database fails, so callers always get an answer.
"""

import base64
import binascii
import threading
import uuid
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import and_, func, or_, text
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from securemail.config import settings
from securemail.database import Base, get_session_factory
from securemail.models.scan import ScanRecord
from securemail.services.mock_data import build_mock_scans
from securemail.utils.logging_config import StructuredLogger
from securemail.utils.risk_levels import RESULTS

logger = StructuredLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

FORWARD = "forward"
BACKWARD = "backward"

TOP_CATEGORIES = 10


class RecordStoreError(Exception):
    """Base error for scan history operations."""


class RecordNotFoundError(RecordStoreError):
    """No scan with the requested id."""


class InvalidCursorError(RecordStoreError, ValueError):
    """Pagination cursor could not be decoded."""


class InvalidRecordError(RecordStoreError):
    """The database rejected the record itself (constraint or data error)."""


# Errors that mean the database cannot be reached, as opposed to rejecting a statement
UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, DisconnectionError)


@dataclass
class ScanFilters:
    """Optional filters for listing scans."""
    message_type: Optional[str] = None
    result: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search: Optional[str] = None
    channels: Optional[List[str]] = None


@dataclass
class ScanPage:
    """One page of scan history."""
    records: List[Dict[str, Any]]
    has_next: bool
    has_previous: bool
    next_cursor: Optional[str]
    previous_cursor: Optional[str]

    @property
    def total(self) -> int:
        return len(self.records)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "records": self.records,
            "pagination": {
                "has_next": self.has_next,
                "has_previous": self.has_previous,
                "next_cursor": self.next_cursor,
                "previous_cursor": self.previous_cursor,
                "total": self.total,
            },
        }


# ============== CURSORS ==============


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def encode_cursor(record_id: str, created_at: datetime) -> str:
    """Opaque cursor: base64 of "<id>:<epoch seconds with microseconds>"."""
    delta = _as_utc(created_at) - EPOCH
    micros = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
    raw = f"{record_id}:{micros // 1_000_000}.{micros % 1_000_000:06d}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> Tuple[str, datetime]:
    try:
        raw = base64.b64decode(cursor.encode("ascii"), validate=True).decode("utf-8")
        record_id, _, seconds = raw.rpartition(":")
        micros = int(Decimal(seconds) * 1_000_000)
        created_at = EPOCH + timedelta(microseconds=micros)
    except (binascii.Error, UnicodeError, InvalidOperation, ValueError, OverflowError) as e:
        raise InvalidCursorError("Invalid cursor format") from e

    if not record_id:
        raise InvalidCursorError("Invalid cursor format")
    return record_id, created_at


# ============== SHARED HELPERS ==============


def _direction(direction: Optional[str]) -> str:
    return BACKWARD if (direction or "").lower() == BACKWARD else FORWARD


def _page_size(limit: Optional[int]) -> int:
    if not limit or limit < 1:
        return settings.default_page_size
    return min(limit, settings.max_page_size)


def _prepare(record: Dict[str, Any], id_prefix: str = "") -> Dict[str, Any]:
    """Normalize an insert payload into a full row."""
    created_at = record.get("created_at") or datetime.now(timezone.utc)
    return {
        "id": f"{id_prefix}{uuid.uuid4()}",
        "content": record["content"],
        "message_type": (record.get("message_type") or "email").strip().lower(),
        "sender": record.get("sender"),
        "subject": record.get("subject"),
        "phone_number": record.get("phone_number"),
        "result": record["result"],
        "confidence_score": float(record.get("confidence_score") or 0.0),
        "risk_score": float(record.get("risk_score") or 0.0),
        "category": record.get("category"),
        "flags": list(record.get("flags") or []),
        "analysis_details": dict(record.get("analysis_details") or {}),
        "created_at": _as_utc(created_at),
    }


def _public(row: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a stored row as handed to callers."""
    created_at = _as_utc(row["created_at"])
    data = dict(row)
    data["flags"] = list(row.get("flags") or [])
    data["analysis_details"] = dict(row.get("analysis_details") or {})
    data["created_at"] = created_at
    data["timestamp"] = created_at
    data["cursor"] = encode_cursor(row["id"], created_at)
    return data


def _row_to_dict(row: ScanRecord) -> Dict[str, Any]:
    return _public({
        "id": row.id,
        "content": row.content,
        "message_type": row.message_type,
        "sender": row.sender,
        "subject": row.subject,
        "phone_number": row.phone_number,
        "result": row.result,
        "confidence_score": row.confidence_score,
        "risk_score": row.risk_score,
        "category": row.category,
        "flags": row.flags,
        "analysis_details": row.analysis_details,
        "created_at": row.created_at,
    })


def _make_page(records: List[Dict[str, Any]], size: int, cursor: Optional[str]) -> ScanPage:
    has_next = len(records) > size
    records = records[:size]
    has_previous = cursor is not None
    return ScanPage(
        records=records,
        has_next=has_next,
        has_previous=has_previous,
        next_cursor=records[-1]["cursor"] if has_next and records else None,
        previous_cursor=records[0]["cursor"] if has_previous and records else None,
    )


def _breakdown(rows: Iterable[Tuple[Any, str, int]], key_name: str) -> List[Dict[str, Any]]:
    table: Dict[Any, Dict[str, Any]] = {}
    for key, result, count in rows:
        entry = table.setdefault(
            key, {key_name: key, "total": 0, "spam": 0, "clean": 0, "suspicious": 0}
        )
        entry["total"] += count
        if result in RESULTS:
            entry[result] += count
    return list(table.values())


def _build_aggregate(
    days: int,
    result_counts: Dict[str, int],
    avg_confidence: Optional[float],
    avg_risk: Optional[float],
    category_rows: Iterable[Tuple[str, int, Optional[float]]],
    channel_rows: Iterable[Tuple[str, str, int]],
    day_rows: Iterable[Tuple[str, str, int]],
) -> Dict[str, Any]:
    by_channel = sorted(_breakdown(channel_rows, "channel"), key=lambda e: (-e["total"], e["channel"]))
    by_day = sorted(_breakdown(day_rows, "date"), key=lambda e: e["date"], reverse=True)

    return {
        "period_days": days,
        "total": sum(result_counts.values()),
        "spam_count": result_counts.get("spam", 0),
        "clean_count": result_counts.get("clean", 0),
        "suspicious_count": result_counts.get("suspicious", 0),
        "avg_confidence": round(float(avg_confidence), 1) if avg_confidence is not None else 0.0,
        "avg_risk_score": round(float(avg_risk), 1) if avg_risk is not None else 0.0,
        "by_category": [
            {
                "category": category,
                "count": int(count),
                "avg_risk_score": round(float(avg), 1) if avg is not None else 0.0,
            }
            for category, count, avg in category_rows
        ],
        "by_channel": by_channel,
        "by_day": by_day,
    }


# ============== SQL BACKEND ==============


class SqlRecordStore:
    """Scan history in a SQL database via SQLAlchemy."""

    mode = "database"

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory or get_session_factory()

    def create_schema(self):
        with self._session_factory() as session:
            Base.metadata.create_all(bind=session.get_bind())

    def ping(self) -> bool:
        try:
            with self._session_factory() as session:
                session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database ping failed", error=str(e))
            return False

    def insert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        data = _prepare(record)
        with self._session_factory() as session:
            row = ScanRecord(**data)
            session.add(row)
            session.commit()
            stored = _row_to_dict(row)
        logger.debug("Scan stored", scan_id=stored["id"], result=stored["result"])
        return stored

    def _filtered(self, query, filters: Optional[ScanFilters]):
        if not filters:
            return query
        if filters.message_type:
            query = query.filter(ScanRecord.message_type == filters.message_type.lower())
        if filters.channels:
            query = query.filter(ScanRecord.message_type.in_([c.lower() for c in filters.channels]))
        if filters.result:
            query = query.filter(ScanRecord.result == filters.result)
        if filters.start_date:
            query = query.filter(ScanRecord.created_at >= _as_utc(filters.start_date))
        if filters.end_date:
            query = query.filter(ScanRecord.created_at <= _as_utc(filters.end_date))
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.filter(
                or_(
                    ScanRecord.content.ilike(pattern),
                    ScanRecord.sender.ilike(pattern),
                    ScanRecord.subject.ilike(pattern),
                )
            )
        return query

    def list(
        self,
        filters: Optional[ScanFilters] = None,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        direction: str = FORWARD,
    ) -> ScanPage:
        direction = _direction(direction)
        size = _page_size(limit)
        key = decode_cursor(cursor) if cursor else None

        with self._session_factory() as session:
            query = self._filtered(session.query(ScanRecord), filters)

            if key:
                cursor_id, cursor_ts = key
                if direction == FORWARD:
                    query = query.filter(
                        or_(
                            ScanRecord.created_at > cursor_ts,
                            and_(ScanRecord.created_at == cursor_ts, ScanRecord.id > cursor_id),
                        )
                    )
                else:
                    query = query.filter(
                        or_(
                            ScanRecord.created_at < cursor_ts,
                            and_(ScanRecord.created_at == cursor_ts, ScanRecord.id < cursor_id),
                        )
                    )

            if direction == FORWARD:
                query = query.order_by(ScanRecord.created_at.asc(), ScanRecord.id.asc())
            else:
                query = query.order_by(ScanRecord.created_at.desc(), ScanRecord.id.desc())

            records = [_row_to_dict(row) for row in query.limit(size + 1).all()]

        return _make_page(records, size, cursor)

    def get_by_id(self, scan_id: str) -> Dict[str, Any]:
        with self._session_factory() as session:
            row = session.get(ScanRecord, scan_id)
            if row is None:
                raise RecordNotFoundError(f"Scan {scan_id} not found")
            return _row_to_dict(row)

    def delete(self, scan_id: str) -> None:
        with self._session_factory() as session:
            row = session.get(ScanRecord, scan_id)
            if row is None:
                raise RecordNotFoundError(f"Scan {scan_id} not found")
            session.delete(row)
            session.commit()
        logger.info("Scan deleted", scan_id=scan_id)

    def aggregate(self, days: int = 7, channels: Optional[List[str]] = None) -> Dict[str, Any]:
        since = datetime.now(timezone.utc) - timedelta(days=days)
        window = ScanRecord.created_at >= since
        if channels:
            window = and_(window, ScanRecord.message_type.in_([c.lower() for c in channels]))
        day = func.date(ScanRecord.created_at)

        with self._session_factory() as session:
            result_counts = dict(
                session.query(ScanRecord.result, func.count(ScanRecord.id))
                .filter(window)
                .group_by(ScanRecord.result)
                .all()
            )
            avg_confidence, avg_risk = (
                session.query(func.avg(ScanRecord.confidence_score), func.avg(ScanRecord.risk_score))
                .filter(window)
                .one()
            )
            category_rows = (
                session.query(
                    ScanRecord.category,
                    func.count(ScanRecord.id),
                    func.avg(ScanRecord.risk_score),
                )
                .filter(window, ScanRecord.category.isnot(None))
                .group_by(ScanRecord.category)
                .order_by(func.count(ScanRecord.id).desc())
                .limit(TOP_CATEGORIES)
                .all()
            )
            channel_rows = (
                session.query(ScanRecord.message_type, ScanRecord.result, func.count(ScanRecord.id))
                .filter(window)
                .group_by(ScanRecord.message_type, ScanRecord.result)
                .all()
            )
            day_rows = (
                session.query(day, ScanRecord.result, func.count(ScanRecord.id))
                .filter(window)
                .group_by(day, ScanRecord.result)
                .all()
            )

        return _build_aggregate(
            days,
            result_counts,
            avg_confidence,
            avg_risk,
            category_rows,
            channel_rows,
            [(str(d), result, count) for d, result, count in day_rows],
        )


# ============== MOCK BACKEND ==============


class MockRecordStore:
    """
    In-memory scan history seeded with fixture data.
    Used when no database is configured or the database is unreachable.
    """

    mode = "mock"

    def __init__(self, records: Optional[Iterable[Dict[str, Any]]] = None):
        self._lock = threading.Lock()
        seed = build_mock_scans(settings.mock_fixture_size) if records is None else records
        self._records: Dict[str, Dict[str, Any]] = {
            r["id"]: dict(r, created_at=_as_utc(r["created_at"])) for r in seed
        }

    def ping(self) -> bool:
        return True

    def insert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        data = _prepare(record, id_prefix="mock-")
        with self._lock:
            self._records[data["id"]] = data
        return _public(data)

    @staticmethod
    def _matches(record: Dict[str, Any], filters: Optional[ScanFilters]) -> bool:
        if not filters:
            return True
        if filters.message_type and record["message_type"] != filters.message_type.lower():
            return False
        if filters.channels and record["message_type"] not in {c.lower() for c in filters.channels}:
            return False
        if filters.result and record["result"] != filters.result:
            return False
        if filters.start_date and record["created_at"] < _as_utc(filters.start_date):
            return False
        if filters.end_date and record["created_at"] > _as_utc(filters.end_date):
            return False
        if filters.search:
            needle = filters.search.lower()
            haystacks = (record.get("content"), record.get("sender"), record.get("subject"))
            if not any(h and needle in h.lower() for h in haystacks):
                return False
        return True

    def list(
        self,
        filters: Optional[ScanFilters] = None,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        direction: str = FORWARD,
    ) -> ScanPage:
        direction = _direction(direction)
        size = _page_size(limit)
        key = decode_cursor(cursor) if cursor else None
        backward = direction == BACKWARD

        with self._lock:
            rows = [r for r in self._records.values() if self._matches(r, filters)]

        rows.sort(key=lambda r: (r["created_at"], r["id"]), reverse=backward)

        if key:
            cursor_id, cursor_ts = key
            if backward:
                rows = [r for r in rows if (r["created_at"], r["id"]) < (cursor_ts, cursor_id)]
            else:
                rows = [r for r in rows if (r["created_at"], r["id"]) > (cursor_ts, cursor_id)]

        return _make_page([_public(r) for r in rows[: size + 1]], size, cursor)

    def get_by_id(self, scan_id: str) -> Dict[str, Any]:
        with self._lock:
            row = self._records.get(scan_id)
        if row is None:
            raise RecordNotFoundError(f"Scan {scan_id} not found")
        return _public(row)

    def delete(self, scan_id: str) -> None:
        with self._lock:
            if self._records.pop(scan_id, None) is None:
                raise RecordNotFoundError(f"Scan {scan_id} not found")

    def aggregate(self, days: int = 7, channels: Optional[List[str]] = None) -> Dict[str, Any]:
        since = datetime.now(timezone.utc) - timedelta(days=days)
        wanted = {c.lower() for c in channels} if channels else None
        with self._lock:
            rows = [
                r for r in self._records.values()
                if r["created_at"] >= since and (wanted is None or r["message_type"] in wanted)
            ]

        result_counts = Counter(r["result"] for r in rows)

        category_stats: Dict[str, List[float]] = defaultdict(list)
        for r in rows:
            if r.get("category"):
                category_stats[r["category"]].append(r["risk_score"])
        category_rows = sorted(
            (
                (category, len(risks), sum(risks) / len(risks))
                for category, risks in category_stats.items()
            ),
            key=lambda row: (-row[1], row[0]),
        )[:TOP_CATEGORIES]

        channel_rows = Counter((r["message_type"], r["result"]) for r in rows)
        day_rows = Counter((r["created_at"].date().isoformat(), r["result"]) for r in rows)

        return _build_aggregate(
            days,
            dict(result_counts),
            sum(r["confidence_score"] for r in rows) / len(rows) if rows else None,
            sum(r["risk_score"] for r in rows) / len(rows) if rows else None,
            category_rows,
            [(channel, result, count) for (channel, result), count in channel_rows.items()],
            [(d, result, count) for (d, result), count in day_rows.items()],
        )


# ============== DEGRADING FRONT ==============


class ResilientRecordStore:
    """
    Record store that prefers the database and degrades to mock data.

    The first connectivity error switches the store to the in-memory mock
    for the rest of the process. Any other database error is raised as
    InvalidRecordError and the database stays in use. Not-found and
    bad-cursor errors pass through.
    """

    def __init__(
        self,
        primary: Optional[SqlRecordStore] = None,
        fallback: Optional[MockRecordStore] = None,
    ):
        self._primary = primary
        self._fallback = fallback
        self._lock = threading.Lock()

    @property
    def mode(self) -> str:
        return SqlRecordStore.mode if self._primary is not None else MockRecordStore.mode

    @property
    def fallback(self) -> MockRecordStore:
        with self._lock:
            if self._fallback is None:
                self._fallback = MockRecordStore()
            return self._fallback

    def _call(self, operation: str, *args, **kwargs):
        primary = self._primary
        if primary is not None:
            try:
                return getattr(primary, operation)(*args, **kwargs)
            except UNAVAILABLE_ERRORS as e:
                logger.warning(
                    "Record store unavailable, switching to mock data",
                    operation=operation,
                    error=str(e),
                )
                self._primary = None
            except SQLAlchemyError as e:
                logger.warning("Database rejected record", operation=operation, error=str(e))
                raise InvalidRecordError(f"Record rejected by the database: {e.__class__.__name__}") from e
        return getattr(self.fallback, operation)(*args, **kwargs)

    def ping(self) -> bool:
        primary = self._primary
        return primary is not None and primary.ping()

    def insert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("insert", record)

    def list(
        self,
        filters: Optional[ScanFilters] = None,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        direction: str = FORWARD,
    ) -> ScanPage:
        return self._call("list", filters, cursor, limit, direction)

    def get_by_id(self, scan_id: str) -> Dict[str, Any]:
        return self._call("get_by_id", scan_id)

    def delete(self, scan_id: str) -> None:
        return self._call("delete", scan_id)

    def aggregate(self, days: int = 7, channels: Optional[List[str]] = None) -> Dict[str, Any]:
        return self._call("aggregate", days, channels)


def build_record_store() -> ResilientRecordStore:
    """Record store for the configured environment."""
    if settings.mock_mode:
        logger.info("Mock mode enabled: scan history served from fixture data")
        return ResilientRecordStore()

    try:
        primary = SqlRecordStore()
        primary.create_schema()
    except (SQLAlchemyError, ImportError) as e:
        logger.warning("Database connection failed, using mock data", error=str(e))
        return ResilientRecordStore()

    logger.info("Record store connected to database")
    return ResilientRecordStore(primary)
