"""
Ledger Reducer Module

Turns a stream of ledger entries into per-player balances.

Sign convention:
- buy-in: money leaves the player and enters the pot, balance decreases
- cash-out: money leaves the pot and goes to the player, balance increases
- adjustment: manual entry, balance is set to the amount

Buy-in and cash-out amounts are non-negative and take their sign from the
type. An adjustment carries the balance itself, so its amount may be negative.

Every function returns a new dict and leaves its input untouched. Entries can
be ``LedgerEntry`` objects or anything exposing the same attributes (the
``LedgerTransaction`` ORM model does).

Example Usage:
    from ledger_service.utils.ledger_reducer import LedgerEntry, reduce_ledger

    balances = reduce_ledger({}, LedgerEntry(id="1", type="buy-in", player_id="A", amount=Decimal("50")))
    balances = reduce_ledger(balances, LedgerEntry(id="2", type="cash-out", player_id="A", amount=Decimal("80")))
    # {"A": Decimal("30.00")}
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, Mapping, Optional

from ledger_service.utils.money import ZERO, money_map, round_decimal, to_money


class TransactionType(str, enum.Enum):
    buy_in = "buy-in"
    cash_out = "cash-out"
    adjustment = "adjustment"


@dataclass(frozen=True)
class LedgerEntry:
    id: str
    type: TransactionType
    player_id: str
    amount: Decimal
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    game_ref: Optional[str] = None
    note: Optional[str] = None


def _entry_type(entry) -> TransactionType:
    try:
        return TransactionType(entry.type)
    except ValueError:
        raise ValueError(f"Unknown transaction type: {entry.type!r}")


def _entry_amount(amount, tx_type: TransactionType) -> Decimal:
    value = to_money(amount)
    if value < 0 and tx_type != TransactionType.adjustment:
        raise ValueError(f"Transaction amount must be non-negative, got {value}")
    return value


def _signed_delta(tx_type: TransactionType, amount: Decimal) -> Decimal:
    if tx_type == TransactionType.buy_in:
        return -amount
    if tx_type == TransactionType.cash_out:
        return amount
    raise ValueError("Adjustments set a balance; they have no signed delta")


def reduce_ledger(balances: Mapping[str, Decimal], entry) -> Dict[str, Decimal]:
    """
    Apply one ledger entry and return the next balance map.

    Args:
        balances: Current balances, player_id -> amount
        entry: The entry to apply

    Returns:
        New balance map

    Raises:
        ValueError: If a buy-in or cash-out amount is negative or the type is unknown
    """
    tx_type = _entry_type(entry)
    amount = _entry_amount(entry.amount, tx_type)
    result = money_map(balances)

    if tx_type == TransactionType.adjustment:
        result[entry.player_id] = amount
    else:
        current = result.get(entry.player_id, ZERO)
        result[entry.player_id] = round_decimal(current + _signed_delta(tx_type, amount))

    return result


def revert_entry(balances: Mapping[str, Decimal], entry) -> Dict[str, Decimal]:
    """
    Undo a buy-in or cash-out, used when the entry is deleted.

    An adjustment overwrote whatever was there before, so it cannot be undone
    from the balance alone; rebuild from the remaining log instead.

    Raises:
        ValueError: For adjustments, negative amounts or unknown types
    """
    tx_type = _entry_type(entry)
    if tx_type == TransactionType.adjustment:
        raise ValueError("Adjustments cannot be reverted incrementally; rebuild balances from the log")

    amount = _entry_amount(entry.amount, tx_type)
    result = money_map(balances)
    current = result.get(entry.player_id, ZERO)
    result[entry.player_id] = round_decimal(current - _signed_delta(tx_type, amount))
    return result


def apply_amount_edit(balances: Mapping[str, Decimal], entry, new_amount: Decimal) -> Dict[str, Decimal]:
    """
    Re-derive a balance after the amount of ``entry`` changed to ``new_amount``.

    Only the difference is applied, with the sign convention of the entry's
    type. ``entry`` must still carry the old amount.

    Raises:
        ValueError: For adjustments, negative amounts or unknown types
    """
    tx_type = _entry_type(entry)
    if tx_type == TransactionType.adjustment:
        raise ValueError("Editing an adjustment requires rebuilding balances from the log")

    old_amount = _entry_amount(entry.amount, tx_type)
    difference = _entry_amount(new_amount, tx_type) - old_amount
    result = money_map(balances)
    current = result.get(entry.player_id, ZERO)
    result[entry.player_id] = round_decimal(current + _signed_delta(tx_type, difference))
    return result


def rebuild_balances(entries: Iterable, players: Iterable[str] = ()) -> Dict[str, Decimal]:
    """
    Replay a whole log from scratch, in the order given.

    Players listed in ``players`` start at zero so they appear in
    the result even without entries.
    """
    balances: Dict[str, Decimal] = {player_id: ZERO for player_id in players}
    for entry in entries:
        balances = reduce_ledger(balances, entry)
    return balances
