"""
Entry point for the chronopick Flask application.

Run with:
    python app.py

Or with a production WSGI server:
    gunicorn -w 1 app:application

Sessions live in process memory, so run a single worker process.
"""

from chronopick import create_app

application = create_app()

if __name__ == "__main__":
    application.run(host="0.0.0.0", port=5000, debug=False)
