"""Routes for the feed blueprint."""

from firebase_admin import firestore
from flask import current_app, g, jsonify, request

from clubhouse.auth.decorators import login_required
from clubhouse.core.constants import DEFAULT_FEED_SIZE
from clubhouse.errors import ValidationError

from . import bp
from .formatting import to_display_dict


def _requested_limit():
    """Parse and clamp the ``limit`` query parameter."""
    raw = request.args.get("limit")
    if raw is None:
        limit = DEFAULT_FEED_SIZE
    else:
        try:
            limit = int(raw)
        except ValueError:
            raise ValidationError("limit must be an integer.") from None
    return max(1, min(limit, current_app.config["FEED_MAX_ITEMS"]))


@bp.route("/api")
@login_required
def api_feed():
    """Return the logged in user's ranked feed as JSON."""
    max_items = _requested_limit()
    db = firestore.client()
    engine = current_app.extensions["feed_engine"]
    items = engine.generate_feed(db, g.user["uid"], max_items=max_items)
    return jsonify(
        {"items": [to_display_dict(item) for item in items], "count": len(items)}
    )
