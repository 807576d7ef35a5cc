"""
Entry point for running the EagleKidz admin Flask application.

This module imports the application factory and starts the development
server when executed directly. In production a WSGI server like
gunicorn should serve ``wsgi:app`` instead.
"""

from eaglekidz_admin import create_app

app = create_app()

if __name__ == "__main__":
    # The backend usually listens on 8080 locally, so use 5000 here.
    app.run(host="0.0.0.0", port=5000, debug=True)
