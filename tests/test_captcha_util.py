import captcha_util
from utils.captcha_helper import now_ms


def seed(app):
    store = app.extensions["captcha_service"].store
    with app.app_context():
        store.put("expired-token-1", "ABCDEF", 1)
        store.put("fresh-token-22", "ABCDEF", now_ms())


def test_stats_command(app, test_config, capsys):
    seed(app)
    assert captcha_util.main(["stats"], config_class=test_config) == 0
    out = capsys.readouterr().out
    assert "Total CAPTCHAs in database: 2" in out
    assert "Expiry time: 5 minutes" in out


def test_list_command_marks_expired(app, test_config, capsys):
    seed(app)
    assert captcha_util.main(["list"], config_class=test_config) == 0
    out = capsys.readouterr().out
    assert "EXPIRED | Key: expired-..." in out
    assert "VALID   | Key: fresh-to..." in out
    assert "ABCDEF" not in out


def test_clean_then_clear(app, test_config, capsys):
    seed(app)
    assert captcha_util.main(["clean"], config_class=test_config) == 0
    assert "Removed 1 expired" in capsys.readouterr().out
    assert captcha_util.main(["clear"], config_class=test_config) == 0
    assert "(1 removed)" in capsys.readouterr().out


def test_unknown_command(capsys):
    assert captcha_util.main(["frobnicate"]) == 1
    assert "Unknown command" in capsys.readouterr().out
