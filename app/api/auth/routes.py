from flask import Blueprint, abort, request, current_app
from flasgger import swag_from
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt,
)
from sqlalchemy.exc import SQLAlchemyError

from ...errors import InputInvalid, StorageFailure
from ...utils.audit import audit_log
from ...utils.rbac import current_user_or_none
from ...extensions import db
from ...models.user import User
from ...models.token_blocklist import TokenBlocklist
from ...schemas.auth import RegisterSchema, LoginSchema
from ...schemas.user import UserSchema
from ...utils.validation import validate_or_abort

auth_bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_req_schema = LoginSchema()
user_schema = UserSchema()


@auth_bp.post("/register")
@swag_from({
    "tags": ["Auth"],
    "summary": "Register a subject profile",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "email": {"type": "string", "example": "jane@example.com"},
                "password": {"type": "string", "example": "StrongPass123"},
                "full_name": {"type": "string", "example": "Jane Doe"},
                "username": {"type": "string", "example": "jane"},
            },
            "required": ["email", "password", "full_name"]
        }
    }],
    "responses": {
        "201": {"description": "User created"},
        "400": {"description": "Validation error"},
        "409": {"description": "Email already exists"}
    }
})
def register():
    payload = request.get_json(silent=True) or {}
    payload = validate_or_abort(register_schema, payload)

    email = payload["email"].lower().strip()
    username = (payload.get("username") or "").strip() or None

    if User.query.filter_by(email=email).first():
        abort(409, description={"code": "EMAIL_TAKEN", "message": "Email already registered"})
    if username and User.query.filter_by(username=username).first():
        abort(409, description={"code": "USERNAME_TAKEN", "message": "Username already taken"})

    user = User(email=email, full_name=payload["full_name"].strip(), username=username)
    user.set_password(payload["password"])

    try:
        db.session.add(user)
        db.session.flush()  # ensure user.id exists for audit

        audit_log(
            action="USER_REGISTERED",
            entity_type="AUTH",
            entity_id=str(user.id),
            details={"user_id": str(user.id)},
        )

        db.session.commit()
        return {"message": "User registered successfully", "user": user_schema.dump(user)}, 201

    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error during register")
        raise StorageFailure("Failed to register user")


@auth_bp.post("/login")
@swag_from({
    "tags": ["Auth"],
    "summary": "Login with email and password",
    "responses": {
        200: {"description": "Login successful, tokens returned"},
        400: {"description": "Validation error"},
        401: {"description": "Invalid credentials"},
        403: {"description": "User account not active"}
    }
})
def login():
    payload = request.get_json(silent=True) or {}
    payload = validate_or_abort(login_req_schema, payload)

    email = payload["email"].lower().strip()

    try:
        user = User.query.filter_by(email=email).first()

        # Invalid credentials (don't leak which part failed)
        if not user or not user.check_password(payload["password"]):
            audit_log(action="LOGIN_FAILED_INVALID_CREDENTIALS", entity_type="AUTH")
            db.session.commit()
            abort(401, description={"code": "INVALID_CREDENTIALS", "message": "Invalid email or password"})

        if not user.is_active:
            audit_log(action="LOGIN_FAILED_INACTIVE_ACCOUNT", entity_type="AUTH", entity_id=str(user.id))
            db.session.commit()
            abort(403, description={"code": "ACCOUNT_INACTIVE", "message": "Account is not active"})

        access_token = create_access_token(identity=str(user.id))
        refresh_token = create_refresh_token(identity=str(user.id))

        audit_log(action="LOGIN_SUCCESS", entity_type="AUTH", entity_id=str(user.id))
        db.session.commit()

        return {
            "message": "Login successful",
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "user": user_schema.dump(user),
        }, 200

    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error during login")
        raise StorageFailure("Authentication is temporarily unavailable")


@auth_bp.post("/refresh")
@jwt_required(refresh=True)
@swag_from({
    "tags": ["Auth"],
    "security": [{"BearerAuth": []}],
    "summary": "Refresh access token (requires refresh token)",
    "responses": {
        200: {"description": "New access token issued"},
        401: {"description": "Unauthorized"},
    },
})
def refresh():
    user = current_user_or_none()
    if not user or not user.is_active:
        abort(401, description={"code": "USER_INACTIVE", "message": "User inactive or not found"})

    return {"access_token": create_access_token(identity=str(user.id))}, 200


@auth_bp.get("/me")
@jwt_required()
@swag_from({
    "tags": ["Auth"],
    "security": [{"BearerAuth": []}],
    "summary": "Get current subject profile",
    "responses": {
        200: {"description": "User profile"},
        401: {"description": "Unauthorized"},
        404: {"description": "User not found"},
    },
})
def me():
    user = current_user_or_none()
    if not user:
        abort(404, description={"code": "NOT_FOUND", "message": "User not found"})
    return {"user": user_schema.dump(user)}, 200


@auth_bp.post("/me/photo")
@jwt_required()
@swag_from({
    "tags": ["Auth"],
    "security": [{"BearerAuth": []}],
    "summary": "Upload the profile photo used when a session has none",
    "consumes": ["multipart/form-data"],
    "parameters": [{"in": "formData", "name": "photo", "type": "file", "required": True}],
    "responses": {
        200: {"description": "Photo stored"},
        400: {"description": "Missing or unsupported file"},
        401: {"description": "Unauthorized"},
    },
})
def upload_profile_photo():
    user = current_user_or_none()
    if not user:
        abort(404, description={"code": "NOT_FOUND", "message": "User not found"})

    photo = request.files.get("photo")
    if not photo or not photo.filename:
        raise InputInvalid(details={"photo": ["Missing data for required field."]})

    storage = current_app.extensions["photo_storage"]
    photo_url = storage.upload(photo, user.id)
    user.profile_photo_url = photo_url
    try:
        audit_log(action="PROFILE_PHOTO_UPDATED", entity_type="AUTH", entity_id=str(user.id))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        storage.discard(photo_url)
        current_app.logger.exception("DB error while saving profile photo")
        raise StorageFailure("Failed to save profile photo")

    return {"user": user_schema.dump(user)}, 200


def _revoke_current_token(action: str, message: str):
    jti = (get_jwt() or {}).get("jti")
    if not jti:
        abort(400, description={"code": "INVALID_TOKEN", "message": "Invalid token"})

    try:
        db.session.add(TokenBlocklist(jti=jti))
        audit_log(action=action, entity_type="AUTH", details={"jti": jti})
        db.session.commit()
        return {"message": message}, 200

    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error during %s", action)
        raise StorageFailure("Logout failed")


@auth_bp.post("/logout")
@jwt_required()
@swag_from({
    "tags": ["Auth"],
    "security": [{"BearerAuth": []}],
    "summary": "Logout (revoke access token)",
    "responses": {
        200: {"description": "Logged out"},
        401: {"description": "Unauthorized"},
    },
})
def logout():
    return _revoke_current_token("LOGOUT_ACCESS", "Logged out successfully")


@auth_bp.post("/logout/refresh")
@jwt_required(refresh=True)
def logout_refresh():
    return _revoke_current_token("LOGOUT_REFRESH", "Refresh token revoked")

