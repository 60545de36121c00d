from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Tuple

from flask import Blueprint, current_app, jsonify, request

from gasmeter.errors import (
    DisambiguationFailed,
    InvalidInput,
    MeterReaderError,
)
from gasmeter.media.pipeline import GasMeterReader

api = Blueprint("api", __name__)

# One reader per app; its session is shared by every request, so reads are serialized.
_READ_LOCK = threading.Lock()


def _reader() -> GasMeterReader:
    return current_app.extensions["gasmeter_reader"]


def _image_bytes() -> bytes:
    """
    Accept either a raw image body or a multipart upload in field "image".
    """
    upload = request.files.get("image")
    if upload is not None:
        return upload.read()
    return request.get_data(cache=False) or b""


def _error(e: MeterReaderError) -> Tuple[Any, int]:
    status = 422 if isinstance(e, (DisambiguationFailed, InvalidInput)) else 502
    body: Dict[str, Any] = {"ok": False, "stage": e.stage, "error": str(e)}
    return jsonify(body), status


@api.route("/", methods=["GET"])
def healthcheck() -> str:
    return "gas meter reader running"


@api.route("/readings", methods=["POST"])
def create_reading() -> Any:
    """
    Read the gas meter in the posted photo.

    Body: raw JPEG bytes, or multipart/form-data with an "image" file.
    Returns the reading as JSON; errors carry the failing stage.
    """
    image = _image_bytes()
    if not image:
        return jsonify({"ok": False, "stage": "request", "error": "empty image"}), 400

    try:
        with _READ_LOCK:
            result = _reader().read(image)
    except MeterReaderError as e:
        logging.error("[READ ERROR %s] %s", e.stage, e)
        return _error(e)

    return jsonify(result.to_dict())


@api.route("/readings/last", methods=["GET"])
def last_reading() -> Any:
    return jsonify({"read": _reader().last_reading})
