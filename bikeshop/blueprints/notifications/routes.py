"""
Notification feed routes
"""
from flask import request, jsonify
from flask_login import login_required

from bikeshop.services.notification_service import NotificationService

from . import notifications_bp


@notifications_bp.route("/")
@login_required
def feed():
    """Latest notifications; ``?unread=1`` for unread only"""
    limit = request.args.get("limit", 20, type=int)
    limit = min(max(limit or 20, 1), 200)
    unread_only = request.args.get("unread", "").lower() in ("1", "true", "yes")

    return jsonify({
        "notifications": [n.to_dict() for n in NotificationService.feed(limit=limit, unread_only=unread_only)],
        "unread_count": NotificationService.unread_count(),
    })


@notifications_bp.route("/<int:notification_id>/read", methods=["POST"])
@login_required
def mark_read(notification_id: int):
    if not NotificationService.mark_as_read(notification_id):
        return jsonify({"success": False, "message": "Notification not found"}), 404
    return jsonify({"success": True, "unread_count": NotificationService.unread_count()})


@notifications_bp.route("/read-all", methods=["POST"])
@login_required
def mark_all_read():
    updated = NotificationService.mark_all_as_read()
    return jsonify({"success": True, "updated": updated, "unread_count": 0})
