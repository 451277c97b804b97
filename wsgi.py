"""
WSGI entry point: ``gunicorn wsgi:app``

Run a single worker (or set SCHEDULER_ENABLED=false on all but one) so the
daily reminder job is not scheduled once per process.
"""
import os
import sys
from pathlib import Path

if Path('.env').exists():
    from dotenv import load_dotenv
    load_dotenv()

if not os.environ.get('SECRET_KEY'):
    sys.exit("SECRET_KEY must be set to run the bike shop API")

from bikeshop import create_app
from config import get_config

app = create_app(get_config())
