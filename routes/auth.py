"""
Authentication routes: key-based signup (CAPTCHA protected) and key checks
"""
from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import IntegrityError

from models import db
from models.user import User
from routes.captcha import captcha_payload, get_captcha_service, request_fields
from services.errors import StoreError
from utils.auth_utils import generate_user_id, generate_user_key, hash_key, verify_key

auth_bp = Blueprint('auth', __name__)

MIN_AUTHOR_NAME_LENGTH = 3
GENERIC_ERROR = "Something went wrong. Please try again later."
CAPTCHA_INVALID_MSG = "Verification failed. Please try again."
REGISTRATION_CLOSED_MSG = "User registration is currently closed. Please check back later."
AUTHOR_NAME_MSG = f"Author name must be at least {MIN_AUTHOR_NAME_LENGTH} characters."
AUTHOR_TAKEN_MSG = "Author name already taken. Please choose a different name."


def _registration_closed():
    return jsonify({"success": False, "message": REGISTRATION_CLOSED_MSG}), 403


def _fail_with_new_captcha(message, status):
    """Error response carrying a replacement challenge, since the old one is spent."""
    body = {"success": False, "message": message}
    try:
        body["captcha"] = captcha_payload(get_captcha_service().issue_deferred())
    except StoreError as e:
        current_app.logger.error(f"Error generating replacement CAPTCHA: {str(e)}", exc_info=True)
    return jsonify(body), status


@auth_bp.route('/signup', methods=['GET'])
def signup_form():
    """Signup form data: a fresh CAPTCHA challenge."""
    if not current_app.config.get('REGISTRATION_OPEN', True):
        return _registration_closed()
    try:
        issued = get_captcha_service().issue_deferred()
    except StoreError as e:
        current_app.logger.error(f"Error generating CAPTCHA: {str(e)}", exc_info=True)
        return jsonify({"success": False, "message": GENERIC_ERROR}), 500
    return jsonify({"registration_open": True, "captcha": captcha_payload(issued)})


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """
    Create an author. Input (JSON or form): author_name, captcha_key, captcha_answer.
    The generated key is returned once and only its hash is kept.
    """
    if not current_app.config.get('REGISTRATION_OPEN', True):
        return _registration_closed()

    data = request_fields()
    author_name = str(data.get("author_name") or "").strip()
    captcha_key = str(data.get("captcha_key") or "").strip()
    captcha_answer = str(data.get("captcha_answer") or "")

    if len(author_name) < MIN_AUTHOR_NAME_LENGTH:
        return _fail_with_new_captcha(AUTHOR_NAME_MSG, 400)

    try:
        captcha_ok = bool(captcha_key and captcha_answer.strip()) and \
            get_captcha_service().verify(captcha_key, captcha_answer)
    except StoreError as e:
        current_app.logger.error(f"Error verifying CAPTCHA: {str(e)}", exc_info=True)
        return jsonify({"success": False, "message": GENERIC_ERROR}), 500
    if not captcha_ok:
        return _fail_with_new_captcha(CAPTCHA_INVALID_MSG, 400)

    if User.query.filter_by(author_name=author_name).first():
        return _fail_with_new_captcha(AUTHOR_TAKEN_MSG, 409)

    user_key = generate_user_key()
    user = User(id=generate_user_id(), author_name=author_name, key_hash=hash_key(user_key))
    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return _fail_with_new_captcha(AUTHOR_TAKEN_MSG, 409)
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating user: {str(e)}", exc_info=True)
        return jsonify({"success": False, "message": GENERIC_ERROR}), 500

    current_app.logger.info(f"New author registered: {author_name}")
    return jsonify({
        "success": True,
        "user_id": user.id,
        "author_name": author_name,
        "user_key": user_key,
    }), 201


@auth_bp.route('/auth/verify-key', methods=['POST'])
def api_verify_key():
    """Check an author's bearer key. Input (JSON or form): author_name, key."""
    data = request_fields()
    author_name = str(data.get("author_name") or "").strip()
    key = str(data.get("key") or "")
    if not author_name or not key:
        return jsonify({"valid": False}), 400
    user = User.query.filter_by(author_name=author_name).first()
    return jsonify({"valid": bool(user and verify_key(user.key_hash, key))})
