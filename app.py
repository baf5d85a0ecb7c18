"""Development launcher: ``python app.py`` (use a WSGI server with ``timepay.main:create_app()`` in production)."""

import os

from timepay.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "5000")), debug=app.config["DEBUG"])
