"""
CAPTCHA routes: issue, image, verify, stats
"""
from flask import Blueprint, Response, current_app, jsonify, request, url_for

from services.errors import CaptchaNotFound, RenderError, StoreError

captcha_bp = Blueprint('captcha', __name__)

CAPTCHA_INVALID_MSG = "Verification failed. Please try again."
CAPTCHA_UNAVAILABLE_MSG = "Failed to generate security check. Please try again."
CAPTCHA_NOT_FOUND_MSG = "Captcha not found or expired. Please refresh the page."
GENERIC_ERROR = "Something went wrong. Please try again later."

NO_CACHE_HEADERS = {
    'Cache-Control': 'no-cache, no-store, must-revalidate',
    'Pragma': 'no-cache',
    'Expires': '0',
}


def get_captcha_service():
    return current_app.extensions['captcha_service']


def request_fields():
    """Submitted fields: a JSON object body, otherwise the form."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = request.form
    return data


def image_response(image, headers=None):
    """PNG response that no browser or proxy may cache."""
    response = Response(image, mimetype='image/png')
    response.headers.update(NO_CACHE_HEADERS)
    if headers:
        response.headers.update(headers)
    return response


def captcha_payload(issued):
    """Form fields for a freshly issued challenge."""
    return {
        "captcha_key": issued.token,
        "expiry_minutes": issued.expiry_minutes,
        "image_url": url_for('captcha.captcha_image', token=issued.token),
    }


@captcha_bp.route('/captcha', methods=['GET'])
def new_captcha():
    """Issue a challenge; the image is fetched separately by key."""
    try:
        issued = get_captcha_service().issue_deferred()
    except StoreError as e:
        current_app.logger.error(f"Error generating CAPTCHA: {str(e)}", exc_info=True)
        return jsonify({"success": False, "message": CAPTCHA_UNAVAILABLE_MSG}), 500
    return jsonify(captcha_payload(issued))


@captcha_bp.route('/captcha/image', methods=['GET'])
def new_captcha_image():
    """Issue a challenge and return its image at once; the key travels in a header."""
    try:
        issued = get_captcha_service().issue()
    except (RenderError, StoreError) as e:
        current_app.logger.error(f"Error generating CAPTCHA: {str(e)}", exc_info=True)
        return jsonify({"success": False, "message": CAPTCHA_UNAVAILABLE_MSG}), 500
    return image_response(
        issued.image,
        {'X-Captcha-Key': issued.token, 'X-Captcha-Expiry-Minutes': str(issued.expiry_minutes)},
    )


@captcha_bp.route('/captcha/<token>.png', methods=['GET'])
def captcha_image(token):
    """Serve a freshly rendered image for a live challenge."""
    try:
        image = get_captcha_service().fetch_image(token)
    except CaptchaNotFound:
        return jsonify({"success": False, "message": CAPTCHA_NOT_FOUND_MSG}), 404
    except (RenderError, StoreError) as e:
        current_app.logger.error(f"Error generating CAPTCHA image: {str(e)}", exc_info=True)
        return jsonify({"success": False, "message": CAPTCHA_UNAVAILABLE_MSG}), 500
    return image_response(image)


@captcha_bp.route('/captcha/verify', methods=['POST'])
def verify_captcha():
    """Check an answer. Input (JSON or form): captcha_key, captcha_answer."""
    data = request_fields()
    captcha_key = str(data.get("captcha_key") or "").strip()
    captcha_answer = str(data.get("captcha_answer") or "")
    if not captcha_key or not captcha_answer.strip():
        return jsonify({"success": False, "message": CAPTCHA_INVALID_MSG}), 400
    try:
        ok = get_captcha_service().verify(captcha_key, captcha_answer)
    except StoreError as e:
        current_app.logger.error(f"Error verifying CAPTCHA: {str(e)}", exc_info=True)
        return jsonify({"success": False, "message": GENERIC_ERROR}), 500
    if not ok:
        return jsonify({"success": False, "message": CAPTCHA_INVALID_MSG}), 400
    return jsonify({"success": True})


@captcha_bp.route('/captcha/stats', methods=['GET'])
def captcha_stats():
    """Live challenge count and expiry settings, for monitoring."""
    try:
        return jsonify(get_captcha_service().get_stats())
    except StoreError as e:
        current_app.logger.error(f"Error reading CAPTCHA stats: {str(e)}", exc_info=True)
        return jsonify({"success": False, "message": GENERIC_ERROR}), 500
