#!/usr/bin/env python3
"""
Renovate Backend - Main application entry point
"""
import logging
import os

from dotenv import load_dotenv

load_dotenv()

from app import create_app  # noqa: E402
from scheduler import init_scheduler  # noqa: E402

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
)

app = create_app()
scheduler = init_scheduler(app)

if __name__ == '__main__':
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('DEBUG', 'True').lower() == 'true'

    app.run(
        host='0.0.0.0',
        port=port,
        debug=debug,
        use_reloader=False if scheduler else debug,
    )
