# utils/escalation.py
from typing import Optional

from utils.sanctions_ledger import GuildLedger, SanctionRecord, SanctionType

AUTO_STRIKE_REASON = "Automatic strike: reached {count} active warns (limit {limit})"


def should_escalate(active_warns: int, warn_limit: int) -> bool:
    """True exactly when the warn count sits on a positive multiple of the limit."""
    if warn_limit <= 0:
        return False
    return active_warns > 0 and active_warns % warn_limit == 0


def apply_escalation(ledger: GuildLedger, trigger: SanctionRecord, warn_limit: int) -> Optional[SanctionRecord]:
    """
    Run right after `trigger` was appended. Appends and returns an automatic
    strike when the trigger warn lands the user on the limit, else None.
    Warns stay active and keep counting toward the next multiple.
    """
    if trigger.type != SanctionType.WARN:
        return None

    count = ledger.count_active(trigger.user_id, SanctionType.WARN)
    if not should_escalate(count, warn_limit):
        return None

    return ledger.append_sanction(
        trigger.user_id,
        SanctionType.STRIKE,
        AUTO_STRIKE_REASON.format(count=count, limit=warn_limit),
        authorized_by=trigger.authorized_by,
        issued_by=trigger.issued_by,
        ticket=trigger.ticket,
        user_tag=trigger.user_tag,
        auto=True,
    )
