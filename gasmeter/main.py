from __future__ import annotations

import logging
from typing import Optional

from flask import Flask

from gasmeter.api.readings import api
from gasmeter.config import Settings, get_settings
from gasmeter.media.pipeline import GasMeterReader


# ================================
# APP FACTORY
# ================================
def create_app(
    settings: Optional[Settings] = None,
    reader: Optional[GasMeterReader] = None,
) -> Flask:
    """
    Build the Flask app. `reader` is injectable for tests; otherwise it is
    built from settings (environment).
    """
    if reader is None:
        settings = settings or get_settings()
        reader = GasMeterReader.from_settings(settings)

    app = Flask(__name__)
    app.extensions["gasmeter_reader"] = reader
    app.register_blueprint(api)
    return app


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s:%(name)s:%(message)s")
