"""
Gamification tests: points, levels, badges and who may award whom.
"""

import pytest

from retailhub.errors import PermissionDeniedError, ValidationError
from retailhub.models import PointsEvent, UserBadge, UserGamification
from retailhub.services import gamification_service
from retailhub.services.context_service import load_context


class TestComputePoints:

    def test_rewards_scale_with_multiplier(self):
        assert gamification_service.compute_points("sale_completed") == 10
        assert gamification_service.compute_points("sale_completed", 1.5) == 15
        assert gamification_service.compute_points("customer_satisfaction", "holiday_sale") == 30

    def test_penalties_ignore_multiplier(self):
        assert gamification_service.compute_points("late_arrival", 3) == -10

    @pytest.mark.parametrize("event,multiplier", [
        ("teleportation", 1.0),
        ("sale_completed", 0),
        ("sale_completed", 6),
        ("sale_completed", "black_friday"),
        ("sale_completed", True),
    ])
    def test_invalid(self, event, multiplier):
        with pytest.raises(ValidationError):
            gamification_service.compute_points(event, multiplier)

    def test_levels_and_badges(self):
        assert gamification_service.level_for(0).name == "Débutant"
        assert gamification_service.level_for(299).level == 2
        assert gamification_service.level_for(5000).level == 5
        assert [b.type for b in gamification_service.badges_for(650)] == ["bronze", "silver", "gold"]


class TestAwardPoints:

    def test_level_up_and_badge_in_one_award(self, db_session, manager_ctx, seller_user):
        for _ in range(9):
            gamification_service.award_points(manager_ctx, seller_user.id, "sale_completed")
        result = gamification_service.award_points(manager_ctx, seller_user.id, "perfect_attendance")

        assert result["total_points"] == 115
        assert result["level"] == 2
        assert result["level_name"] == "Vendeur"
        assert result["level_up"] is True
        assert result["new_badges"] == ["bronze"]
        assert db_session.query(PointsEvent).filter_by(user_id=seller_user.id).count() == 10

    def test_total_never_negative_and_badges_kept(self, db_session, admin_ctx, seller_user):
        gamification_service.award_points(admin_ctx, seller_user.id, "training_completed", 5.0)
        gamification_service.award_points(admin_ctx, seller_user.id, "missed_target")
        gamification_service.award_points(admin_ctx, seller_user.id, "training_missed")
        gamification_service.award_points(admin_ctx, seller_user.id, "training_missed")
        result = gamification_service.award_points(admin_ctx, seller_user.id, "customer_complaint")

        record = db_session.query(UserGamification).filter_by(user_id=seller_user.id).one()
        assert record.total_points == 0 == result["total_points"]
        assert record.level == 1
        assert db_session.query(UserBadge).filter_by(user_id=seller_user.id, badge_type="bronze").count() == 1

    def test_manager_limited_to_own_stores(self, db_session, manager_ctx, seller_b):
        with pytest.raises(PermissionDeniedError):
            gamification_service.award_points(manager_ctx, seller_b.id, "sale_completed")

    def test_seller_cannot_award(self, db_session, seller_ctx, seller_user):
        with pytest.raises(PermissionDeniedError):
            gamification_service.award_points(seller_ctx, seller_user.id, "sale_completed")


class TestReads:

    def test_own_profile_and_progress(self, db_session, manager_ctx, seller_user):
        gamification_service.award_points(manager_ctx, seller_user.id, "training_completed", 2.5)
        profile = gamification_service.get_profile(load_context(seller_user.id))
        assert profile["total_points"] == 50
        assert profile["next_level_points"] == 100
        assert profile["progress_to_next_level"] == 50.0
        assert len(profile["recent_events"]) == 1

    def test_seller_cannot_read_colleague_profile(self, db_session, seller_ctx, manager_user):
        with pytest.raises(PermissionDeniedError):
            gamification_service.get_profile(seller_ctx, manager_user.id)

    def test_leaderboard_scope(self, db_session, admin_ctx, manager_ctx, seller_user, seller_b):
        gamification_service.award_points(admin_ctx, seller_user.id, "sale_completed")
        gamification_service.award_points(admin_ctx, seller_b.id, "perfect_attendance")

        board = gamification_service.leaderboard(admin_ctx)
        assert [row["user_id"] for row in board] == [seller_b.id, seller_user.id]
        assert board[0]["rank"] == 1

        assert [row["user_id"] for row in gamification_service.leaderboard(manager_ctx)] == [seller_user.id]
