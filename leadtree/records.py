"""
Typed records returned by the store — one explicit mapping function per entity.

Store functions never hand ORM rows to callers: rows are converted here while
the session is still open, so records stay valid after session_scope() exits.
"""
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class LeadRecord:
    id: str
    hash: str
    source: str
    user_id: Optional[str]
    created_at: Optional[datetime] = None
    motivation: Optional[str] = None
    status: Optional[str] = None
    score: Optional[float] = None
    color: Optional[str] = None
    depth: Optional[int] = None      # only set by traversal queries

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['created_at'] = _iso(self.created_at)
        if self.depth is None:
            data.pop('depth')
        return data


@dataclass(frozen=True)
class UserRecord:
    id: str
    session: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        # The session token is a credential; never echo it back.
        return {'id': self.id, 'email': self.email, 'created_at': _iso(self.created_at)}


@dataclass(frozen=True)
class ProfileRecord:
    id: str
    user_id: str
    lead_id: Optional[str] = None
    name: str = ''
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['created_at'] = _iso(self.created_at)
        return data


@dataclass(frozen=True)
class EventRecord:
    id: str
    lead_id: str
    type: str
    data: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['created_at'] = _iso(self.created_at)
        return data


@dataclass(frozen=True)
class RewardRecord:
    id: str
    received_by_lead_id: str
    caused_by_lead_id: Optional[str]
    kind: str
    points: int = 0
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['created_at'] = _iso(self.created_at)
        return data


# ── Mapping functions ────────────────────────────────────────────────────────

def lead_record(row, depth=None) -> Optional[LeadRecord]:
    if row is None:
        return None
    return LeadRecord(
        id=row.id,
        hash=row.hash,
        source=row.source,
        user_id=row.user_id,
        created_at=row.created_at,
        motivation=row.motivation,
        status=row.status,
        score=row.score,
        color=row.color,
        depth=int(depth) if depth is not None else None,
    )


def user_record(row) -> Optional[UserRecord]:
    if row is None:
        return None
    return UserRecord(id=row.id, session=row.session, email=row.email, created_at=row.created_at)


def profile_record(row) -> Optional[ProfileRecord]:
    if row is None:
        return None
    return ProfileRecord(
        id=row.id,
        user_id=row.user_id,
        lead_id=row.lead_id,
        name=row.name or '',
        created_at=row.created_at,
    )


def event_record(row) -> Optional[EventRecord]:
    if row is None:
        return None
    return EventRecord(id=row.id, lead_id=row.lead_id, type=row.type, data=row.data, created_at=row.created_at)


def reward_record(row) -> Optional[RewardRecord]:
    if row is None:
        return None
    return RewardRecord(
        id=row.id,
        received_by_lead_id=row.received_by_lead_id,
        caused_by_lead_id=row.caused_by_lead_id,
        kind=row.kind,
        points=row.points or 0,
        created_at=row.created_at,
    )
