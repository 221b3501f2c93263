"""
CAPTCHA maintenance utility.
Run: python captcha_util.py <command>

Commands:
  stats     Show CAPTCHA statistics and configuration
  clean     Remove expired CAPTCHAs from the database
  list      List all CAPTCHAs with their status
  clear     Remove ALL CAPTCHAs (use with caution)
  help      Show this help message
"""
import sys

from services.errors import StoreError
from utils.captcha_helper import now_ms, short_token


def stats(app):
    service = app.extensions["captcha_service"]
    with app.app_context():
        info = service.get_stats()
    print("\nCAPTCHA Statistics")
    print("=" * 50)
    print(f"Total CAPTCHAs in database: {info['total_live']}")
    print(f"Expiry time: {info['expiry_minutes']} minutes")
    print(f"Cleanup interval: {info['sweep_interval_minutes']} minutes")
    print("=" * 50 + "\n")


def clean(app):
    removed = app.extensions["captcha_reclaimer"].run_once()
    print(f"\n[SUCCESS] Removed {removed or 0} expired CAPTCHA(s)\n")


def list_captchas(app):
    service = app.extensions["captcha_service"]
    with app.app_context():
        records = service.store.list_records()
    print("\nAll CAPTCHAs")
    print("=" * 70)
    if not records:
        print("No CAPTCHAs found in database")
    now = now_ms()
    for record in records:
        age = (now - record.issued_at) // 1000
        status = "EXPIRED" if service.is_record_expired(record, now) else "VALID  "
        print(f"{status} | Key: {short_token(record.token)} | Age: {age // 60}m {age % 60}s")
    print("=" * 70 + "\n")


def clear(app):
    service = app.extensions["captcha_service"]
    with app.app_context():
        removed = service.store.clear()
    print(f"\nCleared all CAPTCHAs ({removed} removed)\n")


def show_help(app=None):
    print(__doc__)


COMMANDS = {
    "stats": stats,
    "clean": clean,
    "list": list_captchas,
    "clear": clear,
    "help": show_help,
}


def main(argv=None, config_class=None):
    argv = sys.argv[1:] if argv is None else argv
    command = argv[0] if argv else ""
    if command not in COMMANDS:
        print(f"\nError: Unknown command \"{command}\"")
        show_help()
        return 1
    if command == "help":
        show_help()
        return 0

    from app import create_app
    from config import ScriptConfig

    app = create_app(config_class or ScriptConfig)
    try:
        COMMANDS[command](app)
    except StoreError as e:
        print("[ERROR]", e)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
