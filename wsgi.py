# wsgi.py (at repo root)
import logging

from eaglekidz_admin import create_app

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = create_app()
