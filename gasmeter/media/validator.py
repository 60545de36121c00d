import json
import os
from functools import lru_cache
from typing import Dict, Any, Tuple

from jsonschema import validate, ValidationError

# Path: gasmeter/schemas/
SCHEMA_DIR = os.path.join(
    os.path.dirname(os.path.dirname(__file__)),
    "schemas"
)

READING_SCHEMA = "reading.json"


@lru_cache(maxsize=None)
def load_schema(filename: str = READING_SCHEMA) -> Dict[str, Any]:
    """
    Load a JSON schema file shipped with the package.
    """
    path = os.path.join(SCHEMA_DIR, filename)

    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def validate_reading_payload(data: Any) -> Tuple[bool, str]:
    """
    Validate the structured payload from the vision model against the
    reading schema.

    Returns:
        (True, "") if valid
        (False, "<error message>") if invalid
    """
    schema = load_schema()

    try:
        validate(instance=data, schema=schema)
        return True, ""
    except ValidationError as e:
        return False, e.message
