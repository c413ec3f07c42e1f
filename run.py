"""Local development server for the sales app.

Usage:
    python run.py

Reads .env first, so DATABASE_URL, CREDENTIALS_DATABASE_URL and SECRET_KEY
can live there. The app refuses to start if either database is unset.
For everything else use the flask CLI (flask init-db, flask seed-user,
flask log-activity).
"""

import os

from dotenv import load_dotenv

load_dotenv()

from fluxx import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", "5000"))
    app.run(debug=app.config.get("DEBUG", False), host="0.0.0.0", port=port)
