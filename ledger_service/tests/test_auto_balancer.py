"""
Unit tests for the auto-balancer.
"""
import pytest
from decimal import Decimal
from ledger_service.utils.auto_balancer import auto_balance
from ledger_service.utils.balance_validator import validate_balances
from ledger_service.utils.settlement_solver import solve_settlement

UNBALANCED_MAPS = [
    {"A": Decimal("-10"), "B": Decimal("5")},
    {"A": Decimal("10"), "B": Decimal("10"), "C": Decimal("-19.90")},
    {"A": Decimal("100"), "B": Decimal("-33.33"), "C": Decimal("-33.33"), "D": Decimal("0")},
    {"A": Decimal("0.07"), "B": Decimal("0.07"), "C": Decimal("0.07")},
    {"A": Decimal("-250.45"), "B": Decimal("120.10"), "C": Decimal("80"), "D": Decimal("40.36"), "E": Decimal("3")},
]


@pytest.mark.unit
class TestAutoBalance:
    """Test the auto_balance function."""

    def test_two_player_example(self):
        """A sum of -5 is split as a -2.5 correction on both players."""
        adjusted = auto_balance({"A": Decimal("-10"), "B": Decimal("5")})
        assert adjusted == {"A": Decimal("-7.50"), "B": Decimal("7.50")}

        assert validate_balances(adjusted).is_valid
        assert solve_settlement(adjusted) == [{"payer": "A", "payee": "B", "amount": Decimal("7.50")}]

    def test_zero_players_untouched(self):
        adjusted = auto_balance({"A": Decimal("-10"), "B": Decimal("5"), "C": Decimal("0")})
        assert adjusted["C"] == Decimal("0")
        assert adjusted["A"] == Decimal("-7.50")
        assert adjusted["B"] == Decimal("7.50")

    def test_rounding_remainder_goes_to_last_adjusted_player(self):
        adjusted = auto_balance({"A": Decimal("10"), "B": Decimal("10"), "C": Decimal("-19.90")})
        assert adjusted == {"A": Decimal("9.97"), "B": Decimal("9.97"), "C": Decimal("-19.94")}
        assert sum(adjusted.values()) == Decimal("0")

    def test_balanced_input_unchanged(self):
        balances = {"A": Decimal("-50"), "B": Decimal("49.99"), "C": Decimal("0")}
        adjusted = auto_balance(balances)
        assert adjusted == balances
        assert adjusted is not balances

    def test_input_not_mutated(self):
        balances = {"A": Decimal("-10"), "B": Decimal("5")}
        auto_balance(balances)
        assert balances == {"A": Decimal("-10"), "B": Decimal("5")}

    def test_all_zero(self):
        assert auto_balance({"A": Decimal("0"), "B": Decimal("0")}) == {"A": Decimal("0"), "B": Decimal("0")}
        assert auto_balance({}) == {}

    def test_single_non_zero_player_goes_to_zero(self):
        assert auto_balance({"A": Decimal("12.34"), "B": Decimal("0")}) == {"A": Decimal("0"), "B": Decimal("0")}

    @pytest.mark.parametrize("balances", UNBALANCED_MAPS)
    def test_result_sums_to_zero(self, balances):
        adjusted = auto_balance(balances)
        assert abs(sum(adjusted.values())) <= Decimal("0.01")

    @pytest.mark.parametrize("balances", UNBALANCED_MAPS)
    def test_idempotent(self, balances):
        once = auto_balance(balances)
        assert auto_balance(once) == once
