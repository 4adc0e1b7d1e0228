from __future__ import annotations

from flask import current_app, g, jsonify, request

from smartmark.api import api_bp
from smartmark.extensions import db
from smartmark.models import ApiToken, User, utcnow
from smartmark.services.bookmarks import (
    changes_since,
    create_bookmark,
    delete_bookmark,
    get_user_bookmark,
    latest_cursor,
    list_bookmarks,
    replace_bookmark,
)
from smartmark.services.exceptions import UpstreamError, ValidationError
from smartmark.services.metadata import resolve_metadata
from smartmark.services.security import api_auth_required
from smartmark.services.web_search import configured_providers, search_web


def _get_user_bookmark_or_404(user_id: int, bookmark_id: int):
    bookmark = get_user_bookmark(user_id, bookmark_id)
    if not bookmark:
        return None, (jsonify({"error": "bookmark not found"}), 404)
    return bookmark, None


@api_bp.errorhandler(ValidationError)
def handle_validation_error(exc: ValidationError):
    return jsonify({"error": exc.message}), 400


@api_bp.route("/health")
def health():
    return jsonify({"status": "ok", "service": "Smartmark"})


@api_bp.route("/auth/signup", methods=["POST"])
def signup():
    payload = request.get_json(silent=True) or {}
    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password") or ""
    if not email or not password:
        return jsonify({"error": "email and password are required"}), 400
    if User.query.filter_by(email=email).first():
        return jsonify({"error": "email already registered"}), 409

    user = User(email=email)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return jsonify({"status": "created", "user_id": user.id}), 201


@api_bp.route("/auth/token", methods=["POST"])
def create_token_with_credentials():
    payload = request.get_json(silent=True) or {}
    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password") or ""

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        return jsonify({"error": "invalid credentials"}), 401

    token, token_hash = ApiToken.issue_token()
    row = ApiToken(user_id=user.id, token_hash=token_hash)
    db.session.add(row)
    db.session.commit()
    return jsonify({"token": token, "user_id": user.id, "email": email})


@api_bp.route("/auth/logout", methods=["POST"])
@api_auth_required
def logout():
    g.api_token.revoked_at = utcnow()
    db.session.commit()
    return jsonify({"status": "signed_out"})


@api_bp.route("/bookmarks", methods=["GET"])
@api_auth_required
def bookmarks_list_api():
    user = g.api_user
    cursor = latest_cursor(user.id)
    items = list_bookmarks(user.id)
    return jsonify({"items": [item.as_dict() for item in items], "cursor": cursor})


@api_bp.route("/bookmarks", methods=["POST"])
@api_auth_required
def bookmarks_create_api():
    user = g.api_user
    bookmark = create_bookmark(user.id, request.get_json(silent=True) or {})
    return jsonify(bookmark.as_dict()), 201


@api_bp.route("/bookmarks/<int:bookmark_id>", methods=["PUT"])
@api_auth_required
def bookmarks_replace_api(bookmark_id: int):
    user = g.api_user
    bookmark, error = _get_user_bookmark_or_404(user.id, bookmark_id)
    if error:
        return error
    replace_bookmark(bookmark, request.get_json(silent=True) or {})
    return jsonify(bookmark.as_dict())


@api_bp.route("/bookmarks/<int:bookmark_id>", methods=["DELETE"])
@api_auth_required
def bookmarks_delete_api(bookmark_id: int):
    user = g.api_user
    bookmark, error = _get_user_bookmark_or_404(user.id, bookmark_id)
    if error:
        return error
    delete_bookmark(bookmark)
    return jsonify({"status": "deleted", "id": bookmark_id})


@api_bp.route("/changes", methods=["GET"])
@api_auth_required
def changes_api():
    user = g.api_user
    since = request.args.get("since", default=0, type=int)
    max_limit = current_app.config["CHANGES_PAGE_LIMIT"]
    limit = request.args.get("limit", default=max_limit, type=int)
    limit = max(1, min(limit, max_limit))
    events = changes_since(user.id, since, limit)
    cursor = events[-1].id if events else since
    return jsonify(
        {
            "events": [event.as_dict() for event in events],
            "cursor": cursor,
            "has_more": len(events) == limit,
        }
    )


@api_bp.route("/metadata", methods=["GET"])
def metadata_api():
    result = resolve_metadata(
        request.args.get("url"),
        timeout=current_app.config["METADATA_FETCH_TIMEOUT"],
        max_bytes=current_app.config["METADATA_MAX_BYTES"],
    )
    return jsonify(result.as_dict())


@api_bp.route("/search", methods=["GET"])
def search_api():
    query = (request.args.get("q") or "").strip()
    if not query:
        return jsonify({"error": "Query is required", "results": []}), 400

    try:
        results = search_web(
            query,
            configured_providers(current_app.config),
            max_results=current_app.config["SEARCH_MAX_RESULTS"],
        )
    except UpstreamError:
        return jsonify({"error": "search failed", "results": []}), 500
    return jsonify({"results": [item.as_dict() for item in results]})
