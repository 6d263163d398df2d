# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/shopadmin/routes/auth.py
"""
Authentication API Routes

POST /api/auth/register  -> 201 {token, user}, sets the auth cookie
POST /api/auth/login     -> 200 {token, user}, sets the auth cookie
GET  /api/auth/me        -> 200 {user} with live permissions
POST /api/auth/logout    -> 200, clears the auth cookie

Clients may use the returned token as a Bearer header or rely on the
HttpOnly cookie.
"""

from flask import Blueprint, g, jsonify

from ..decorators import require_auth
from ..errors import UnauthorizedError
from ..services import auth_service, session_service
from ..validation import get_json_body

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _auth_response(result, status_code: int):
    response = jsonify({"token": result.token, "user": result.user.to_dict()})
    response.status_code = status_code
    return session_service.set_auth_cookie(response, result.token)


@auth_bp.post("/register")
def register_route():
    data = get_json_body()
    result = auth_service.register(data.get("name"), data.get("email"), data.get("password"))
    return _auth_response(result, 201)


@auth_bp.post("/login")
def login_route():
    data = get_json_body()
    result = auth_service.login(data.get("email"), data.get("password"))
    return _auth_response(result, 200)


@auth_bp.get("/me")
@require_auth
def me_route():
    user = auth_service.get_session_user(g.session_claims)
    if user is None:
        raise UnauthorizedError("Account no longer exists", code="errors.auth.user_not_found")
    return jsonify({"user": user.to_dict()})


@auth_bp.post("/logout")
def logout_route():
    response = jsonify({"success": True})
    return session_service.clear_auth_cookie(response)
