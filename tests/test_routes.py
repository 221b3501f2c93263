import pytest

from utils.captcha_helper import now_ms


def stored_answer(app, token):
    with app.app_context():
        return app.extensions["captcha_service"].store.get(token).answer_text


def assert_not_cacheable(response):
    assert response.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
    assert response.headers["Pragma"] == "no-cache"
    assert response.headers["Expires"] == "0"


def test_deferred_captcha_and_image(client):
    resp = client.get('/captcha')
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["expiry_minutes"] == 5
    assert data["image_url"] == f"/captcha/{data['captcha_key']}.png"
    assert "answer" not in str(data).lower()

    image = client.get(data["image_url"])
    assert image.status_code == 200
    assert image.mimetype == 'image/png'
    assert image.data.startswith(b'\x89PNG')
    assert_not_cacheable(image)


def test_unknown_image_is_404(client):
    resp = client.get('/captcha/deadbeef.png')
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_expired_image_is_404_and_removed(app, client):
    service = app.extensions["captcha_service"]
    with app.app_context():
        service.store.put("stale", "ABCDEF", now_ms() - service.settings.expiry_ms - 1000)
    assert client.get('/captcha/stale.png').status_code == 404
    with app.app_context():
        assert service.store.get("stale") is None


def test_immediate_image_and_verify_once(app, client):
    resp = client.get('/captcha/image')
    assert resp.status_code == 200
    assert resp.data.startswith(b'\x89PNG')
    assert_not_cacheable(resp)
    key = resp.headers["X-Captcha-Key"]
    answer = stored_answer(app, key)

    ok = client.post('/captcha/verify', json={"captcha_key": key, "captcha_answer": answer.lower()})
    assert ok.status_code == 200
    assert ok.get_json() == {"success": True}

    replay = client.post('/captcha/verify', json={"captcha_key": key, "captcha_answer": answer})
    assert replay.status_code == 400
    assert replay.get_json()["success"] is False


def test_verify_messages_do_not_leak(app, client):
    key = client.get('/captcha').get_json()["captcha_key"]
    wrong = client.post('/captcha/verify', data={"captcha_key": key, "captcha_answer": "nope"})
    unknown = client.post('/captcha/verify', data={"captcha_key": "unknown", "captcha_answer": "nope"})
    assert wrong.get_json() == unknown.get_json()


def test_verify_malformed_input(client):
    assert client.post('/captcha/verify', json={}).status_code == 400
    assert client.post('/captcha/verify', json={"captcha_key": "abc"}).status_code == 400
    assert client.post('/captcha/verify', json={"captcha_answer": 123}).status_code == 400


def test_stats(client):
    client.get('/captcha')
    client.get('/captcha')
    assert client.get('/captcha/stats').get_json() == {
        "total_live": 2,
        "expiry_minutes": 5,
        "sweep_interval_minutes": 1,
    }


def test_maintenance_mode_blocks_requests(app, client):
    app.config["MAINTENANCE_MODE"] = True
    resp = client.get('/captcha')
    assert resp.status_code == 503
    assert resp.get_json()["message"] == app.config["MAINTENANCE_MESSAGE"]


@pytest.mark.parametrize("body", [["abc"], "abc", 5])
def test_verify_non_object_json_is_rejected(client, body):
    resp = client.post('/captcha/verify', json=body)
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False
