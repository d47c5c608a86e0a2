"""
Tests for Result, balance validation and permission helpers.
"""

import pytest

from services import error_codes
from services.balance_validation import MAX_AMOUNT, validate_amount, validate_can_spend
from services.exceptions import InsufficientFunds, NotFound
from services.permissions import can_settle, is_admin
from services.result import Result


class TestResult:
    def test_ok(self):
        result = Result.ok(5)
        assert result
        assert result.unwrap() == 5

    def test_fail(self):
        result = Result.fail("nope", code=error_codes.NOT_FOUND, user_id=3)
        assert not result
        assert result.error_code == error_codes.NOT_FOUND
        assert result.details == {"user_id": 3}
        assert result.unwrap_or(0) == 0
        with pytest.raises(ValueError, match="nope"):
            result.unwrap()


class TestErrors:
    def test_errors_are_value_errors(self):
        assert isinstance(NotFound("x"), ValueError)

    def test_status_codes(self):
        assert NotFound("x").status_code == 404
        assert InsufficientFunds().status_code == 400

    def test_to_dict(self):
        body = InsufficientFunds(balance=3, required=5).to_dict()
        assert body == {
            "error": "Insufficient PlotCoins",
            "code": error_codes.INSUFFICIENT_FUNDS,
            "balance": 3,
            "required": 5,
        }


class TestBalanceValidation:
    @pytest.mark.parametrize("amount", [0, -1, True, 2.5, "10", MAX_AMOUNT + 1])
    def test_invalid_amounts(self, amount):
        assert not validate_amount(amount)

    def test_largest_storable_amount_is_valid(self):
        assert validate_amount(MAX_AMOUNT).unwrap() == MAX_AMOUNT

    def test_oversized_amount_reports_the_limit(self):
        result = validate_amount(10**20, label="Bet amount")
        assert result.error == "Bet amount is too large"
        assert result.details == {"max": MAX_AMOUNT}

    def test_can_spend_exact_balance(self, alice, profile_repo):
        result = validate_can_spend(profile_repo, alice["id"], 1000)
        assert result.unwrap() == 0

    def test_cannot_overspend(self, alice, profile_repo):
        result = validate_can_spend(profile_repo, alice["id"], 1001)
        assert result.error_code == error_codes.INSUFFICIENT_FUNDS
        assert result.details == {"balance": 1000, "required": 1001}

    def test_unknown_user(self, profile_repo):
        assert validate_can_spend(profile_repo, 404, 1).error_code == error_codes.NOT_FOUND


class TestPermissions:
    def test_is_admin_flag_or_allowlist(self):
        assert is_admin({"id": 1, "is_admin": 1})
        assert is_admin({"id": 2, "is_admin": 0}, admin_user_ids=[2])
        assert not is_admin({"id": 3, "is_admin": 0})
        assert not is_admin(None)

    def test_can_settle(self):
        official = {"mode": "official", "creator_id": 1}
        unofficial = {"mode": "unofficial", "creator_id": 1}
        creator = {"id": 1, "is_admin": 0}
        admin = {"id": 2, "is_admin": 1}

        assert not can_settle(official, creator)
        assert can_settle(official, admin)
        assert can_settle(unofficial, creator)
        assert not can_settle(unofficial, admin)
