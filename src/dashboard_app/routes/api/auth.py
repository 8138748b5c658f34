"""
Auth API - sign-up, sign-in, sign-out and the current profile.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, make_response, request

from dashboard_app.decorators import admin_required, current_principal, login_required, services
from hospitality.jwt_service import ACCESS_TOKEN_COOKIE, create_access_token
from hospitality.logging_config import get_logger
from hospitality.schemas import SignInRequest, SignUpRequest
from hospitality.serializers import success_response

auth_bp = Blueprint("auth", __name__)
logger = get_logger(__name__)


@auth_bp.post("/auth/sign-up")
@admin_required
def post_sign_up():
    """Create a profile with credentials (admins only)."""
    data = SignUpRequest.model_validate(request.get_json(silent=True) or {})
    profile = services().auth.sign_up(data.email, data.password, data.full_name, data.role)
    logger.info(f"Profile {current_principal().id} signed up {profile.role} {profile.email}")
    return jsonify(success_response(profile)), HTTPStatus.CREATED


@auth_bp.post("/auth/sign-in")
def post_sign_in():
    """Verify credentials and issue an access token (body and cookie)."""
    data = SignInRequest.model_validate(request.get_json(silent=True) or {})
    profile = services().auth.sign_in(data.email, data.password)

    access_token = create_access_token(
        profile_id=profile.id,
        email=profile.email,
        role=profile.role,
        full_name=profile.full_name,
    )
    response = make_response(
        jsonify(success_response({"access_token": access_token, "profile": profile}))
    )
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        access_token,
        httponly=True,
        secure=request.is_secure,
        samesite="Lax",
        max_age=services().config.jwt_access_token_expires_hours * 3600,
        path="/",
    )
    return response


@auth_bp.post("/auth/sign-out")
@login_required
def post_sign_out():
    services().auth.sign_out(current_principal().id)
    response = make_response(jsonify(success_response({"signed_out": True})))
    response.delete_cookie(ACCESS_TOKEN_COOKIE, path="/")
    return response


@auth_bp.get("/auth/me")
@login_required
def get_me():
    principal = current_principal()
    profile = services().profiles.get_profile(principal.id)
    return jsonify(
        success_response({"profile": profile, "room_ids": sorted(str(r) for r in principal.room_ids)})
    ), HTTPStatus.OK


@auth_bp.post("/auth/password")
@login_required
def post_change_password():
    payload = request.get_json(silent=True) or {}
    services().auth.change_password(
        current_principal().id,
        payload.get("current_password") or "",
        payload.get("new_password") or "",
    )
    return jsonify(success_response({"changed": True})), HTTPStatus.OK
