"""
WSGI entry point for gunicorn-style hosts.
Imports the Flask app from main.py and exposes it as `app`.
"""
from main import app

if __name__ == "__main__":
    app.run()
