# Overview: Flask API routes for points, levels, badges and leaderboard.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_permission
from ..services import gamification_service
from ..services.presentation import Domain, message
from ..validation import json_body, int_arg, require_int


gamification_bp = Blueprint("gamification", __name__, url_prefix="/api/gamification")


@gamification_bp.get("/me")
@require_auth
def my_profile():
    return jsonify(gamification_service.get_profile(g.ctx)), 200


@gamification_bp.get("/users/<int:user_id>")
@require_auth
@require_permission("VIEW_GAMIFICATION")
def user_profile(user_id: int):
    return jsonify(gamification_service.get_profile(g.ctx, user_id)), 200


@gamification_bp.get("/leaderboard")
@require_auth
@require_permission("VIEW_GAMIFICATION")
def leaderboard():
    limit = min(int_arg("limit", 10), 100)
    return jsonify({"leaderboard": gamification_service.leaderboard(g.ctx, limit=limit)}), 200


@gamification_bp.post("/award")
@require_auth
@require_permission("AWARD_POINTS")
def award_points():
    data = json_body()
    result = gamification_service.award_points(
        g.ctx,
        require_int(data, "user_id"),
        data.get("event_type"),
        data.get("multiplier", 1.0),
    )
    text = message(g.ctx.role, Domain.GAMIFICATION, "award_success", points=result["points"])
    if result["level_up"]:
        level_text = message(
            g.ctx.role, Domain.GAMIFICATION, "level_up",
            level=result["level"], level_name=result["level_name"],
        )
        text = f"{text} {level_text}"
    return jsonify({"message": text, **result}), 200
