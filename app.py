"""Main entry point for the application."""

import os

from esportshub import create_app

app = create_app()


if __name__ == "__main__":
    port = int(os.environ.get("PORT", "8080"))
    app.run(debug=True, host="0.0.0.0", port=port)  # nosec
