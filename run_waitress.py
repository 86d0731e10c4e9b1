"""
Serve the legal functions app with the Waitress WSGI server.
"""
import os
import logging

from waitress import serve
from main import app

logger = logging.getLogger(__name__)

if __name__ == '__main__':
    port = int(os.getenv('PORT', '5000'))
    threads = int(os.getenv('WAITRESS_THREADS', '4'))

    logger.info(f"Starting legal functions with Waitress on port {port} ({threads} threads)")
    serve(app, host='0.0.0.0', port=port, threads=threads)
