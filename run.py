"""
Development server for the bike shop API.

Production runs wsgi.py under Gunicorn instead. Reads FLASK_ENV,
FLASK_DEBUG, FLASK_HOST and FLASK_PORT from the environment or a .env file.
"""
import os
from pathlib import Path

if Path('.env').exists():
    from dotenv import load_dotenv
    load_dotenv()

from bikeshop import create_app
from config import get_config


def main():
    os.makedirs('instance', exist_ok=True)

    config_class = get_config()
    app = create_app(config_class)

    debug = os.environ.get('FLASK_DEBUG', 'true').lower() in ('true', '1', 'yes')
    host = os.environ.get('FLASK_HOST', '127.0.0.1')
    port = int(os.environ.get('FLASK_PORT', 5000))

    app.logger.info(f"Bike shop API ({config_class.__name__}) on {host}:{port}, debug={debug}")
    # one process only, or the reminder scheduler would start twice
    app.run(debug=debug, host=host, port=port, use_reloader=False)


if __name__ == '__main__':
    main()
