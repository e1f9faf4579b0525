"""
Analytics helpers for balance maps and session history.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Optional

from ledger_service.utils.money import ZERO, parse_numeric_input, round_decimal


@dataclass
class BalanceStats:
    winners: int
    losers: int
    biggest_winner: Optional[str]
    biggest_winner_amount: Decimal
    biggest_loser: Optional[str]
    biggest_loser_amount: Decimal


@dataclass
class PlayerStats:
    total_sessions: int = 0
    win_count: int = 0
    loss_count: int = 0
    win_rate: Decimal = ZERO
    biggest_win: Decimal = ZERO
    biggest_loss: Decimal = ZERO
    total_winnings: Decimal = ZERO
    net_winnings: Decimal = ZERO
    avg_winnings: Decimal = ZERO
    last_session_balance: Optional[Decimal] = None
    last_session_date: Optional[datetime] = None


def get_balance_stats(balances: Mapping[str, Any]) -> BalanceStats:
    """Count winners and losers and find the biggest of each."""
    winners = losers = 0
    biggest_winner, biggest_winner_amount = None, ZERO
    biggest_loser, biggest_loser_amount = None, ZERO

    for player_id, raw in balances.items():
        amount = parse_numeric_input(raw).amount
        if amount > 0:
            winners += 1
            if amount > biggest_winner_amount:
                biggest_winner, biggest_winner_amount = player_id, amount
        elif amount < 0:
            losers += 1
            if amount < biggest_loser_amount:
                biggest_loser, biggest_loser_amount = player_id, amount

    return BalanceStats(
        winners=winners,
        losers=losers,
        biggest_winner=biggest_winner,
        biggest_winner_amount=biggest_winner_amount,
        biggest_loser=biggest_loser,
        biggest_loser_amount=biggest_loser_amount,
    )


def calculate_player_stats(player_id: str, history: Iterable[Dict[str, Any]]) -> PlayerStats:
    """
    Aggregate one player's results over completed sessions.

    Args:
        player_id: The player to report on
        history: Completed sessions as dicts with "date" (datetime) and
            "balances" (player_id -> amount)

    Returns:
        PlayerStats; sessions the player was not part of are ignored and a
        balance of exactly zero counts as neither win nor loss
    """
    sessions = [s for s in history if player_id in (s.get("balances") or {})]
    if not sessions:
        return PlayerStats()

    stats = PlayerStats(total_sessions=len(sessions))
    for session in sessions:
        balance = parse_numeric_input(session["balances"][player_id]).amount
        stats.net_winnings += balance
        if balance > 0:
            stats.win_count += 1
            stats.total_winnings += balance
            stats.biggest_win = max(stats.biggest_win, balance)
        elif balance < 0:
            stats.loss_count += 1
            stats.biggest_loss = min(stats.biggest_loss, balance)

    stats.win_rate = round_decimal(Decimal(stats.win_count * 100) / stats.total_sessions)
    if stats.win_count:
        stats.avg_winnings = round_decimal(stats.total_winnings / stats.win_count)
    stats.net_winnings = round_decimal(stats.net_winnings)
    stats.total_winnings = round_decimal(stats.total_winnings)

    last = max(sessions, key=lambda s: s["date"])
    stats.last_session_balance = parse_numeric_input(last["balances"][player_id]).amount
    stats.last_session_date = last["date"]
    return stats
