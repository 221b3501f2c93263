"""
WSGI entry point (gunicorn / Passenger).
Run: gunicorn -c gunicorn_config.py wsgi:app
"""
import sys
import os

# Add project directory to path so 'app' can be imported
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app import create_app

app = create_app()
application = app

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG", "false").lower() in ("true", "1"))
