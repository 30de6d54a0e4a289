from movies_api.app import create_app
from movies_api.settings import load_settings


if __name__ == "__main__":
    settings = load_settings()
    app = create_app(settings)
    app.run(host="0.0.0.0", port=settings.port, debug=settings.debug)
