from flask import Blueprint, request, jsonify

from services.auth_service import (
    authenticate_user, confirm_verification, register_user, resend_verification
)
from utils.tokens import create_access_token

# Define the blueprint
auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


# =========================================================
# LOGIN ROUTE
# =========================================================
@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}

    # 1. Validate credentials and verification state
    user = authenticate_user(data.get("email"), data.get("password"))

    # 2. Issue a bearer token; the role claim is informational only
    token = create_access_token(user)

    return jsonify({
        "token": token,
        "role": user.role,
        "name": user.name,
        "id": user.id,
        "email": user.email
    })


# =========================================================
# SIGNUP / VERIFICATION
# =========================================================
@auth_bp.route("/signup", methods=["POST"])
def signup():
    data = request.get_json(silent=True) or {}
    user = register_user(
        data.get("name"), data.get("email"), data.get("password"), data.get("role")
    )
    return jsonify({
        "message": "Account created successfully! Please check your email to verify your account before logging in.",
        "email": user.email,
        "requiresVerification": True
    }), 201


@auth_bp.route("/resend-verification", methods=["POST"])
def resend():
    data = request.get_json(silent=True) or {}
    resend_verification(data.get("email"))
    return jsonify({"message": "Verification email sent! Please check your inbox."})


@auth_bp.route("/verify-email", methods=["GET", "POST"])
def verify_email():
    token = request.args.get("token")
    if not token:
        token = (request.get_json(silent=True) or {}).get("token")
    user = confirm_verification(token)
    return jsonify({"message": "Email verified. You can now log in.", "email": user.email})
