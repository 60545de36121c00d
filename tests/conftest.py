"""
Shared fakes for the gateway and stager capability interfaces.
"""

from typing import Any, Dict, List, Optional

import pytest

from gasmeter.errors import InferenceFailed, StagingFailed
from gasmeter.media.models import MediaReference


class FakeGateway:
    """Records every call; answers from canned values."""

    def __init__(
        self,
        structured: Optional[Dict[str, Any]] = None,
        texts: Optional[List[str]] = None,
        fail_structured: bool = False,
        fail_text: bool = False,
    ):
        self.structured = structured if structured is not None else {"read": "100.2", "date": "2024-01-01"}
        self.texts = list(texts or [])
        self.fail_structured = fail_structured
        self.fail_text = fail_text
        self.structured_calls: List[Dict[str, Any]] = []
        self.text_calls: List[Dict[str, Any]] = []

    def generate_structured(self, media, system_prompt, prompt, schema, sampling, timeout=None):
        self.structured_calls.append(
            {
                "media": media,
                "system_prompt": system_prompt,
                "prompt": prompt,
                "schema": schema,
                "sampling": sampling,
                "timeout": timeout,
            }
        )
        if self.fail_structured:
            raise InferenceFailed("failed to analyze: boom")
        return dict(self.structured)

    def generate_text(self, prompt, sampling, timeout=None):
        self.text_calls.append({"prompt": prompt, "sampling": sampling, "timeout": timeout})
        if self.fail_text:
            raise InferenceFailed("failed to generate: boom", stage="resolving")
        return self.texts.pop(0)

    @property
    def calls(self) -> int:
        return len(self.structured_calls) + len(self.text_calls)


class FakeStager:
    def __init__(self, fail_upload: bool = False, fail_delete: bool = False):
        self.fail_upload = fail_upload
        self.fail_delete = fail_delete
        self.uploads: List[Dict[str, Any]] = []
        self.deleted: List[str] = []

    def upload(self, data, mime_type, display_name, timeout=None):
        if self.fail_upload:
            raise StagingFailed("failed to upload: bucket missing")
        self.uploads.append({"data": data, "mime_type": mime_type, "display_name": display_name})
        return MediaReference(name=f"uploads/{len(self.uploads)}.jpg", uri="https://storage.test/signed", mime_type=mime_type)

    def delete(self, name, timeout=None):
        self.deleted.append(name)
        if self.fail_delete:
            raise RuntimeError("delete failed")


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def stager():
    return FakeStager()


@pytest.fixture
def jpeg_bytes():
    return b"\xff\xd8\xff\xe0fake-jpeg\xff\xd9"
