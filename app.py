"""Development entrypoint for the background message service."""

import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from cvpilot.main import create_app  # noqa: E402

app = create_app()


if __name__ == "__main__":
    app.run(host="127.0.0.1", port=int(os.getenv("PORT", "5050")), debug=True)
