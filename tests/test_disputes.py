"""
Tests for disputes on creator-resolved predictions.
"""

import sqlite3

import pytest

from services.exceptions import (
    AlreadyDisputed,
    DisputeNotAllowed,
    DisputeWindowClosed,
    NotFound,
    ValidationError,
)


@pytest.fixture
def resolved_market(creator, alice, bob, make_prediction, prediction_repo):
    pred = make_prediction(creator["id"])
    prediction_repo.place_bet_atomic(pred["id"], alice["id"], "yes", 100)
    prediction_repo.place_bet_atomic(pred["id"], bob["id"], "no", 100)
    prediction_repo.settle_prediction_atomic(pred["id"], "yes", creator["id"])
    return pred


class TestDisputes:
    def test_bettor_can_dispute(self, resolved_market, bob, dispute_service, prediction_repo, profile_repo):
        balance_before = profile_repo.get_balance(bob["id"])

        result = dispute_service.dispute(resolved_market["id"], bob["id"], "no", "Creator got it wrong")

        assert result["no_votes"] == 1
        assert result["yes_votes"] == 0
        pred = prediction_repo.get_prediction(resolved_market["id"])
        assert pred["disputed"] == 1
        assert pred["status"] == "resolved_yes"
        assert profile_repo.get_balance(bob["id"]) == balance_before

    def test_one_dispute_per_user(self, resolved_market, bob, dispute_service):
        dispute_service.dispute(resolved_market["id"], bob["id"], "no")
        with pytest.raises(AlreadyDisputed):
            dispute_service.dispute(resolved_market["id"], bob["id"], "yes")

    def test_non_bettor_cannot_dispute(self, resolved_market, make_user, dispute_service):
        outsider = make_user("outsider")
        with pytest.raises(DisputeNotAllowed, match="bet on"):
            dispute_service.dispute(resolved_market["id"], outsider["id"], "no")

    def test_active_market_cannot_be_disputed(self, creator, alice, make_prediction, prediction_repo, dispute_service):
        pred = make_prediction(creator["id"])
        prediction_repo.place_bet_atomic(pred["id"], alice["id"], "yes", 10)
        with pytest.raises(DisputeNotAllowed, match="resolved"):
            dispute_service.dispute(pred["id"], alice["id"], "no")

    def test_official_market_cannot_be_disputed(self, make_user, alice, make_prediction, prediction_repo, dispute_service):
        admin = make_user("admin", is_admin=True)
        pred = make_prediction(admin["id"], mode="official")
        prediction_repo.place_bet_atomic(pred["id"], alice["id"], "yes", 10)
        prediction_repo.settle_prediction_atomic(pred["id"], "no", admin["id"])
        with pytest.raises(DisputeNotAllowed, match="unofficial"):
            dispute_service.dispute(pred["id"], alice["id"], "yes")

    def test_window_closes(self, resolved_market, bob, dispute_service, repo_db_path):
        conn = sqlite3.connect(repo_db_path)
        conn.execute(
            "UPDATE predictions SET resolved_at = resolved_at - 86401 WHERE id = ?",
            (resolved_market["id"],),
        )
        conn.commit()
        conn.close()

        with pytest.raises(DisputeWindowClosed):
            dispute_service.dispute(resolved_market["id"], bob["id"], "no")

    def test_reason_length(self, resolved_market, bob, dispute_service):
        with pytest.raises(ValidationError):
            dispute_service.dispute(resolved_market["id"], bob["id"], "no", "x" * 501)

    def test_missing_prediction(self, bob, dispute_service):
        with pytest.raises(NotFound):
            dispute_service.dispute(31337, bob["id"], "no")

    def test_list_disputes(self, resolved_market, alice, bob, dispute_service):
        dispute_service.dispute(resolved_market["id"], bob["id"], "no", "Wrong")
        dispute_service.dispute(resolved_market["id"], alice["id"], "yes")

        listing = dispute_service.get_disputes(resolved_market["id"])

        assert listing["yes_votes"] == 1
        assert listing["no_votes"] == 1
        assert [d["username"] for d in listing["disputes"]] == ["bob", "alice"]
