# utils/sanctions_ledger.py
import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from utils.time_utils import iso, utcnow

log = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Types
# ──────────────────────────────────────────────────────────────────────────────

class SanctionType(str, Enum):
    WARN = "warn"
    STRIKE = "strike"


_TYPE_ALIASES = {
    "w": SanctionType.WARN,
    "warn": SanctionType.WARN,
    "s": SanctionType.STRIKE,
    "strike": SanctionType.STRIKE,
}


def normalize_type(text: Optional[str]) -> Optional[SanctionType]:
    """
    Accepted input: "w", "warn", "s" or "strike", any case, surrounding
    whitespace ignored. Anything else returns None.
    """
    return _TYPE_ALIASES.get(str(text or "").strip().lower())


@dataclass(frozen=True)
class StaffRef:
    """A user reference as stored in the ledger: snowflake id plus display tag."""
    id: str
    tag: str = ""


@dataclass
class AnnulInfo:
    reason: str
    authorized_by: StaffRef
    by: StaffRef
    at: str
    ticket: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    # keys the stored block carried; None for a block created in this process
    present: Optional[frozenset] = field(default=None, compare=False, repr=False)

    _KEYS = ("reason", "authorizedById", "authorizedByTag", "byId", "byTag", "at", "ticket")

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "reason": self.reason,
            "authorizedById": self.authorized_by.id,
            "authorizedByTag": self.authorized_by.tag,
            "byId": self.by.id,
            "byTag": self.by.tag,
            "at": self.at,
            "ticket": self.ticket,
        }
        if self.present is not None:
            d = {k: v for k, v in d.items() if k in self.present}
        elif not self.ticket:
            del d["ticket"]
        d.update(self.extra)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AnnulInfo":
        return cls(
            reason=d.get("reason", ""),
            # older records only kept who performed the annulment
            authorized_by=StaffRef(str(d.get("authorizedById", d.get("byId", ""))),
                                   d.get("authorizedByTag", d.get("byTag", ""))),
            by=StaffRef(str(d.get("byId", "")), d.get("byTag", "")),
            at=d.get("at", ""),
            ticket=d.get("ticket"),
            extra={k: v for k, v in d.items() if k not in cls._KEYS},
            present=frozenset(d),
        )


_RECORD_KEYS = {
    "id", "userId", "userTag", "type", "reason",
    "authorizedById", "authorizedByTag", "issuedById", "issuedByTag",
    "createdAt", "active", "ticket", "auto", "annul",
}
_ALWAYS_WRITTEN = {"id", "userId", "type"}


@dataclass
class SanctionRecord:
    id: str
    user_id: str
    type: SanctionType
    reason: str
    authorized_by: StaffRef
    issued_by: StaffRef
    created_at: str
    active: bool = True
    user_tag: Optional[str] = None
    ticket: Optional[str] = None
    auto: bool = False
    annul: Optional[AnnulInfo] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    # keys the stored record carried; None for a record created in this process
    present: Optional[frozenset] = field(default=None, compare=False, repr=False)

    def _written(self, key: str, value: Any) -> bool:
        if key in _ALWAYS_WRITTEN:
            return True
        if key == "active" and not value:
            # an annulled record always says so
            return True
        if self.present is not None:
            return key in self.present
        if key in ("userTag", "ticket"):
            return value is not None
        if key == "auto":
            return bool(value)
        return True

    def to_dict(self) -> Dict[str, Any]:
        full: Dict[str, Any] = {
            "id": self.id,
            "userId": self.user_id,
            "userTag": self.user_tag,
            "type": self.type.value,
            "reason": self.reason,
            "authorizedById": self.authorized_by.id,
            "authorizedByTag": self.authorized_by.tag,
            "issuedById": self.issued_by.id,
            "issuedByTag": self.issued_by.tag,
            "createdAt": self.created_at,
            "active": self.active,
            "ticket": self.ticket,
            "auto": self.auto,
        }
        d = {k: v for k, v in full.items() if self._written(k, v)}
        if self.annul is not None:
            d["annul"] = self.annul.to_dict()
        d.update(self.extra)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SanctionRecord":
        annul = d.get("annul")
        return cls(
            id=str(d["id"]),
            user_id=str(d["userId"]),
            type=SanctionType(d["type"]),
            reason=d.get("reason", ""),
            authorized_by=StaffRef(str(d.get("authorizedById", "")), d.get("authorizedByTag", "")),
            issued_by=StaffRef(str(d.get("issuedById", "")), d.get("issuedByTag", "")),
            created_at=d.get("createdAt", ""),
            active=bool(d.get("active", True)),
            user_tag=d.get("userTag"),
            ticket=d.get("ticket"),
            auto=bool(d.get("auto", False)),
            annul=AnnulInfo.from_dict(annul) if isinstance(annul, dict) else None,
            extra={k: v for k, v in d.items() if k not in _RECORD_KEYS},
            present=frozenset(d),
        )


@dataclass
class Counts:
    warns: int
    strikes: int
    warn_limit: int
    strike_limit: int

    @property
    def label(self) -> str:
        return f"Warns {self.warns}/{self.warn_limit} · Strikes {self.strikes}/{self.strike_limit}"


# ──────────────────────────────────────────────────────────────────────────────
# Errors
# ──────────────────────────────────────────────────────────────────────────────

class LedgerError(Exception):
    pass


class NotFound(LedgerError):
    def __init__(self, strategy: "ResolutionStrategy"):
        super().__init__(f"No active sanction matches {strategy.describe()}")
        self.strategy = strategy


class AlreadyAnnulled(LedgerError):
    def __init__(self, record: SanctionRecord):
        super().__init__(f"Sanction {record.id} is already annulled")
        self.record = record


# ──────────────────────────────────────────────────────────────────────────────
# Annulment resolution strategies
# ──────────────────────────────────────────────────────────────────────────────

class ResolutionStrategy:
    def select(self, records: List[SanctionRecord]) -> Optional[SanctionRecord]:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class ByUserAndType(ResolutionStrategy):
    """Most recently appended active record of one user and type."""
    user_id: str
    type: SanctionType

    def select(self, records: List[SanctionRecord]) -> Optional[SanctionRecord]:
        for r in reversed(records):
            if r.active and r.user_id == self.user_id and r.type == self.type:
                return r
        return None

    def describe(self) -> str:
        return f"{self.type.value.upper()} for user {self.user_id}"


@dataclass(frozen=True)
class ByTicket(ResolutionStrategy):
    """
    First active record in document order carrying the ticket, any user.
    Duplicate tickets are never rejected on creation, so the oldest wins.
    """
    ticket: str

    def select(self, records: List[SanctionRecord]) -> Optional[SanctionRecord]:
        for r in records:
            if r.active and r.ticket == self.ticket:
                return r
        return None

    def describe(self) -> str:
        return f"ticket {self.ticket}"


@dataclass(frozen=True)
class ById(ResolutionStrategy):
    """The record with this id, active or not."""
    sanction_id: str

    def select(self, records: List[SanctionRecord]) -> Optional[SanctionRecord]:
        for r in records:
            if r.id == self.sanction_id:
                return r
        return None

    def describe(self) -> str:
        return f"id {self.sanction_id}"


# ──────────────────────────────────────────────────────────────────────────────
# Guild ledger
# ──────────────────────────────────────────────────────────────────────────────

def new_sanction_id(taken: Set[str]) -> str:
    while True:
        sid = f"{int(time.time() * 1000)}_{random.randint(0, 9998)}"
        if sid not in taken:
            return sid


class GuildLedger:
    """
    One guild's sanctions in insertion order. Built from the loaded document
    and written back into it with write_to() before saving.

    Stored entries that cannot be parsed are left out of `records` but kept,
    with their original position, and written back untouched.
    """

    def __init__(self, guild_id: str, records: Optional[Iterable[SanctionRecord]] = None,
                 unparsed: Optional[Iterable[Tuple[int, Any]]] = None):
        self.guild_id = str(guild_id)
        self.records: List[SanctionRecord] = list(records or [])
        self.unparsed: List[Tuple[int, Any]] = list(unparsed or [])

    @classmethod
    def from_document(cls, doc: Dict[str, Any], guild_id) -> "GuildLedger":
        guilds = doc.setdefault("guilds", {})
        entry = guilds.get(str(guild_id))
        if not isinstance(entry, dict):
            entry = {"sanctions": []}
            guilds[str(guild_id)] = entry
        raw = entry.get("sanctions")
        if not isinstance(raw, list):
            raw = []
        records = []
        unparsed = []
        for pos, item in enumerate(raw):
            try:
                records.append(SanctionRecord.from_dict(item))
            except (KeyError, TypeError, ValueError, AttributeError):
                log.warning("Keeping unreadable sanction in guild %s as-is: %r", guild_id, item)
                unparsed.append((pos, item))
        return cls(str(guild_id), records, unparsed)

    def write_to(self, doc: Dict[str, Any]) -> None:
        entry = doc.setdefault("guilds", {}).setdefault(self.guild_id, {})
        out: List[Any] = [r.to_dict() for r in self.records]
        # new records only ever go at the end, so the old positions still hold
        for pos, item in self.unparsed:
            out.insert(pos, item)
        entry["sanctions"] = out

    def _taken_ids(self) -> Set[str]:
        taken = {r.id for r in self.records}
        taken.update(str(item["id"]) for _, item in self.unparsed if isinstance(item, dict) and "id" in item)
        return taken

    # Queries

    def count_active(self, user_id, sanction_type: SanctionType) -> int:
        uid = str(user_id)
        return sum(1 for r in self.records if r.active and r.user_id == uid and r.type == sanction_type)

    def counts_for(self, user_id, warn_limit: int, strike_limit: int) -> Counts:
        return Counts(
            warns=self.count_active(user_id, SanctionType.WARN),
            strikes=self.count_active(user_id, SanctionType.STRIKE),
            warn_limit=warn_limit,
            strike_limit=strike_limit,
        )

    def active_for(self, user_id) -> List[SanctionRecord]:
        uid = str(user_id)
        return [r for r in self.records if r.active and r.user_id == uid]

    def active(self) -> List[SanctionRecord]:
        return [r for r in self.records if r.active]

    # Mutations

    def append_sanction(
        self,
        user_id,
        sanction_type: SanctionType,
        reason: str,
        authorized_by: StaffRef,
        issued_by: StaffRef,
        ticket: Optional[str] = None,
        *,
        user_tag: Optional[str] = None,
        auto: bool = False,
    ) -> SanctionRecord:
        record = SanctionRecord(
            id=new_sanction_id(self._taken_ids()),
            user_id=str(user_id),
            type=sanction_type,
            reason=reason,
            authorized_by=authorized_by,
            issued_by=issued_by,
            created_at=iso(utcnow()),
            active=True,
            user_tag=user_tag,
            ticket=ticket or None,
            auto=auto,
        )
        self.records.append(record)
        return record

    def resolve_annul_target(self, strategy: ResolutionStrategy) -> SanctionRecord:
        record = strategy.select(self.records)
        if record is None:
            raise NotFound(strategy)
        return record

    def annul(
        self,
        record: SanctionRecord,
        reason: str,
        authorized_by: StaffRef,
        actor: StaffRef,
        ticket: Optional[str] = None,
    ) -> SanctionRecord:
        if not record.active:
            raise AlreadyAnnulled(record)
        record.active = False
        record.annul = AnnulInfo(
            reason=reason,
            authorized_by=authorized_by,
            by=actor,
            at=iso(utcnow()),
            ticket=ticket or None,
        )
        return record
