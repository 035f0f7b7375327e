import os

from automart import create_app
from automart.extensions import socketio

app = create_app()

if __name__ == "__main__":
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", "5000"))
    debug = os.getenv("AUTOMART_ENV", "dev") == "dev"

    if app.config.get("SOCKETIO_ENABLED"):
        socketio.run(app, host=host, port=port, debug=debug, allow_unsafe_werkzeug=debug)
    else:
        app.run(host=host, port=port, debug=debug)
