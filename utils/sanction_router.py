# utils/sanction_router.py
"""
Transport-independent entry points for the sanctions feature.

The cog hands over plain form strings and already-resolved staff references;
every call returns a Result carrying either the outcome or a tagged Failure,
so expected problems (bad input, nothing to annul, disk errors) never raise.
"""
import logging
import re
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from utils.config_utils import SanctionsConfig
from utils.escalation import apply_escalation
from utils.sanctions_ledger import (
    AlreadyAnnulled,
    ById,
    ByTicket,
    ByUserAndType,
    Counts,
    GuildLedger,
    NotFound,
    SanctionRecord,
    StaffRef,
    normalize_type,
)
from utils.sanctions_store import LedgerStore

log = logging.getLogger(__name__)

T = TypeVar("T")

_SNOWFLAKE_RE = re.compile(r"\d{15,}")


def parse_user_id(text: Optional[str]) -> Optional[str]:
    """First snowflake found in a mention ("<@123...>") or raw ID, else None."""
    m = _SNOWFLAKE_RE.search(text or "")
    return m.group(0) if m else None


class FailureKind(str, Enum):
    INVALID_USER = "invalid_user"
    INVALID_TYPE = "invalid_type"
    INVALID_REASON = "invalid_reason"
    NOT_FOUND = "not_found"
    ALREADY_ANNULLED = "already_annulled"
    PERSISTENCE_FAILED = "persistence_failed"


@dataclass
class Failure:
    kind: FailureKind
    detail: str = ""
    # which input was rejected for INVALID_USER: "target" or "authorizer"
    field: str = ""
    record: Optional[SanctionRecord] = None


@dataclass
class Result(Generic[T]):
    value: Optional[T] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class ApplyOutcome:
    record: SanctionRecord
    escalation: Optional[SanctionRecord]
    counts: Counts


@dataclass
class AnnulOutcome:
    record: SanctionRecord
    counts: Counts


@dataclass
class SearchOutcome:
    user_id: str
    records: List[SanctionRecord]
    counts: Counts


@dataclass
class UserSanctions:
    user_id: str
    records: List[SanctionRecord] = field(default_factory=list)
    counts: Optional[Counts] = None


def _fail(kind: FailureKind, detail: str = "", **kwargs: Any) -> Result:
    return Result(failure=Failure(kind, detail, **kwargs))


class SanctionRouter:
    """Validates input, drives the guild ledger and persists the result."""

    def __init__(self, config: SanctionsConfig, store: Optional[LedgerStore] = None):
        self.config = config
        self.store = store or LedgerStore(config.db_path)
        self._lock = threading.Lock()

    def _counts(self, ledger: GuildLedger, user_id) -> Counts:
        return ledger.counts_for(user_id, self.config.warn_limit, self.config.strike_limit)

    def _commit(self, doc: Dict[str, Any], ledger: GuildLedger) -> bool:
        ledger.write_to(doc)
        return self.store.save(doc)

    # ─────────────────────────── Apply ───────────────────────────

    def apply_sanction(
        self,
        guild_id,
        target: Optional[StaffRef],
        type_text: str,
        reason: str,
        authorizer: Optional[StaffRef],
        issuer: StaffRef,
        ticket: str = "",
    ) -> Result[ApplyOutcome]:
        if target is None:
            return _fail(FailureKind.INVALID_USER, "Invalid user to sanction.", field="target")
        if authorizer is None:
            return _fail(FailureKind.INVALID_USER, "Invalid authorizing user.", field="authorizer")
        sanction_type = normalize_type(type_text)
        if sanction_type is None:
            return _fail(FailureKind.INVALID_TYPE, 'Invalid type. Use "warn" or "strike".')
        reason = (reason or "").strip()
        if not reason:
            return _fail(FailureKind.INVALID_REASON, "A reason is required.")

        ticket = (ticket or "").strip()
        with self._lock:
            doc = self.store.load()
            ledger = GuildLedger.from_document(doc, guild_id)
            record = ledger.append_sanction(
                target.id,
                sanction_type,
                reason,
                authorized_by=authorizer,
                issued_by=issuer,
                ticket=ticket or None,
                user_tag=target.tag or None,
            )
            escalation = apply_escalation(ledger, record, self.config.warn_limit)
            if not self._commit(doc, ledger):
                return _fail(FailureKind.PERSISTENCE_FAILED, "The sanction could not be saved.")
            counts = self._counts(ledger, target.id)

        log.info("Sanction %s (%s) applied to %s in guild %s by %s",
                 record.id, record.type.value, record.user_id, guild_id, issuer.id)
        if escalation is not None:
            log.info("Automatic strike %s issued to %s in guild %s (%s)",
                     escalation.id, escalation.user_id, guild_id, counts.label)
        return Result(ApplyOutcome(record, escalation, counts))

    # ─────────────────────────── Annul ───────────────────────────

    def _pick_strategy(self, user_text: str, type_text: str, ticket: str, sanction_id: str):
        if sanction_id:
            return ById(sanction_id), None
        if user_text.strip() or type_text.strip():
            user_id = parse_user_id(user_text)
            if user_id is None:
                return None, Failure(FailureKind.INVALID_USER, "Invalid user.", field="target")
            sanction_type = normalize_type(type_text)
            if sanction_type is None:
                return None, Failure(FailureKind.INVALID_TYPE, 'Invalid type. Use "warn" or "strike".')
            return ByUserAndType(user_id, sanction_type), None
        if ticket:
            return ByTicket(ticket), None
        return None, Failure(FailureKind.INVALID_USER, "Provide a user and type, or a ticket.", field="target")

    def annul_sanction(
        self,
        guild_id,
        reason: str,
        authorizer: Optional[StaffRef],
        actor: StaffRef,
        *,
        user_text: str = "",
        type_text: str = "",
        ticket: str = "",
        sanction_id: str = "",
    ) -> Result[AnnulOutcome]:
        """
        Strategy follows the supplied fields: a sanction id wins, then user
        and type, then a ticket on its own. A ticket given alongside user and
        type is only recorded on the annulment.
        """
        if authorizer is None:
            return _fail(FailureKind.INVALID_USER, "Invalid authorizing user.", field="authorizer")
        reason = (reason or "").strip()
        if not reason:
            return _fail(FailureKind.INVALID_REASON, "An annulment reason is required.")
        ticket = (ticket or "").strip()
        strategy, failure = self._pick_strategy(user_text or "", type_text or "", ticket, (sanction_id or "").strip())
        if failure is not None:
            return Result(failure=failure)

        with self._lock:
            doc = self.store.load()
            ledger = GuildLedger.from_document(doc, guild_id)
            try:
                record = ledger.resolve_annul_target(strategy)
                ledger.annul(record, reason, authorized_by=authorizer, actor=actor, ticket=ticket or None)
            except NotFound as e:
                return _fail(FailureKind.NOT_FOUND, f"No active sanction found for {e.strategy.describe()}.")
            except AlreadyAnnulled as e:
                return _fail(FailureKind.ALREADY_ANNULLED, f"Sanction `{e.record.id}` is already annulled.",
                             record=e.record)
            if not self._commit(doc, ledger):
                return _fail(FailureKind.PERSISTENCE_FAILED, "The annulment could not be saved.")
            counts = self._counts(ledger, record.user_id)

        log.info("Sanction %s annulled for %s in guild %s by %s",
                 record.id, record.user_id, guild_id, actor.id)
        return Result(AnnulOutcome(record, counts))

    # ─────────────────────────── Read-only ───────────────────────────

    def search(self, guild_id, user_text: str) -> Result[SearchOutcome]:
        user_id = parse_user_id(user_text)
        if user_id is None:
            return _fail(FailureKind.INVALID_USER, "Invalid user.", field="target")
        ledger = GuildLedger.from_document(self.store.load(), guild_id)
        return Result(SearchOutcome(user_id, ledger.active_for(user_id), self._counts(ledger, user_id)))

    def list_active(self, guild_id) -> Result[List[UserSanctions]]:
        ledger = GuildLedger.from_document(self.store.load(), guild_id)
        grouped: Dict[str, UserSanctions] = {}
        for r in ledger.active():
            grouped.setdefault(r.user_id, UserSanctions(r.user_id)).records.append(r)
        for entry in grouped.values():
            entry.counts = self._counts(ledger, entry.user_id)
        return Result(list(grouped.values()))

    def counts(self, guild_id, user_id) -> Counts:
        ledger = GuildLedger.from_document(self.store.load(), guild_id)
        return self._counts(ledger, user_id)
