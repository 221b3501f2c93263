"""
Gunicorn config: bind to 0.0.0.0 and PORT for Railway/Render.
Each worker runs its own CAPTCHA reclaimer; overlapping sweeps only repeat work.
"""
import os

bind = "0.0.0.0:{}".format(os.environ.get("PORT", "8080"))
workers = 1
threads = 4
timeout = 120
