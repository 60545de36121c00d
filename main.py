from gasmeter.config import get_settings
from gasmeter.main import configure_logging, create_app

# ================================
# START
# ================================
settings = get_settings()
configure_logging(settings.log_level)
app = create_app(settings)


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=settings.port)
