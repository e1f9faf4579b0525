import pytest
from datetime import datetime
from decimal import Decimal
from ledger_service.utils.analytics import calculate_player_stats, get_balance_stats


@pytest.mark.unit
class TestBalanceStats:

    def test_winners_and_losers(self):
        stats = get_balance_stats({"A": "50", "B": "-30", "C": "-20", "D": "0", "E": ""})
        assert stats.winners == 1
        assert stats.losers == 2
        assert stats.biggest_winner == "A"
        assert stats.biggest_winner_amount == Decimal("50")
        assert stats.biggest_loser == "B"
        assert stats.biggest_loser_amount == Decimal("-30")

    def test_empty(self):
        stats = get_balance_stats({})
        assert stats.winners == stats.losers == 0
        assert stats.biggest_winner is None
        assert stats.biggest_loser is None


@pytest.mark.unit
class TestPlayerStats:

    @pytest.fixture
    def history(self):
        return [
            {"date": datetime(2026, 1, 5), "balances": {"A": "40.00", "B": "-40.00"}},
            {"date": datetime(2026, 1, 12), "balances": {"A": "-25.50", "B": "25.50"}},
            {"date": datetime(2026, 1, 19), "balances": {"A": "60.00", "C": "-60.00"}},
            {"date": datetime(2026, 1, 26), "balances": {"B": "10.00", "C": "-10.00"}},
            {"date": datetime(2026, 2, 2), "balances": {"A": "0.00", "B": "0.00"}},
        ]

    def test_aggregates(self, history):
        stats = calculate_player_stats("A", history)
        assert stats.total_sessions == 4
        assert stats.win_count == 2
        assert stats.loss_count == 1
        assert stats.win_rate == Decimal("50.00")
        assert stats.biggest_win == Decimal("60.00")
        assert stats.biggest_loss == Decimal("-25.50")
        assert stats.total_winnings == Decimal("100.00")
        assert stats.net_winnings == Decimal("74.50")
        assert stats.avg_winnings == Decimal("50.00")

    def test_last_session(self, history):
        stats = calculate_player_stats("A", history)
        assert stats.last_session_date == datetime(2026, 2, 2)
        assert stats.last_session_balance == Decimal("0")

    def test_player_without_sessions(self, history):
        stats = calculate_player_stats("Z", history)
        assert stats.total_sessions == 0
        assert stats.win_rate == Decimal("0")
        assert stats.last_session_date is None
