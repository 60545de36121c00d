"""
Media staging.

A stager turns raw image bytes into a MediaReference the inference gateway
can dereference, and disposes of it once the gateway is done with it.

- SupabaseMediaStager: uploads into a Supabase Storage bucket and hands out
  a short-lived signed URL.
- InlineMediaStager: encodes the bytes as a data URL; nothing to dispose.
"""

from __future__ import annotations

import base64
import logging
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Protocol

from gasmeter.errors import StagingFailed
from gasmeter.media.models import MediaReference

logger = logging.getLogger(__name__)


class MediaStager(Protocol):
    def upload(
        self,
        data: bytes,
        mime_type: str,
        display_name: str,
        timeout: Optional[float] = None,
    ) -> MediaReference:
        ...

    def delete(self, name: str, timeout: Optional[float] = None) -> None:
        ...


class InlineMediaStager:
    """
    Stage media by embedding it in the request as a base64 data URL.
    """

    def upload(
        self,
        data: bytes,
        mime_type: str,
        display_name: str,
        timeout: Optional[float] = None,
    ) -> MediaReference:
        b64 = base64.b64encode(data).decode("utf-8")
        return MediaReference(
            name=f"inline/{display_name}",
            uri=f"data:{mime_type};base64,{b64}",
            mime_type=mime_type,
        )

    def delete(self, name: str, timeout: Optional[float] = None) -> None:
        return None


class SupabaseMediaStager:
    """
    Stage media in a Supabase Storage bucket.

    The object lives under "<prefix>/<uuid>.jpg" and is exposed to the
    gateway through a signed URL valid for `signed_url_ttl` seconds.
    Per-call timeouts are governed by the client's storage timeout.
    """

    def __init__(
        self,
        client: Any,
        bucket: str,
        signed_url_ttl: int = 600,
        prefix: str = "uploads",
    ) -> None:
        self._client = client
        self.bucket = bucket
        self.signed_url_ttl = signed_url_ttl
        self.prefix = prefix

    def _bucket(self) -> Any:
        return self._client.storage.from_(self.bucket)

    def upload(
        self,
        data: bytes,
        mime_type: str,
        display_name: str,
        timeout: Optional[float] = None,
    ) -> MediaReference:
        extension = "jpg" if mime_type == "image/jpeg" else mime_type.rsplit("/", 1)[-1]
        name = f"{self.prefix}/{uuid.uuid4().hex}.{extension}"

        try:
            self._bucket().upload(
                name,
                data,
                file_options={"content-type": mime_type, "upsert": "false"},
            )
        except Exception as e:  # noqa: BLE001
            raise StagingFailed(f"failed to upload {display_name!r}: {e}") from e

        try:
            signed = self._bucket().create_signed_url(name, self.signed_url_ttl)
        except Exception as e:  # noqa: BLE001
            self._discard(name)
            raise StagingFailed(f"failed to sign {name!r}: {e}") from e

        uri = None
        if isinstance(signed, dict):
            uri = signed.get("signedURL") or signed.get("signedUrl")
        if not uri:
            self._discard(name)
            raise StagingFailed(f"failed to sign {name!r}: no URL in response")

        logger.info("[STAGED] %s -> %s/%s", display_name, self.bucket, name)
        return MediaReference(name=name, uri=uri, mime_type=mime_type)

    def delete(self, name: str, timeout: Optional[float] = None) -> None:
        self._bucket().remove([name])

    def _discard(self, name: str) -> None:
        try:
            self.delete(name)
        except Exception as e:  # noqa: BLE001
            logger.warning("[STAGING CLEANUP ERROR] %s: %s", name, e)


@contextmanager
def staged_media(
    stager: MediaStager,
    data: bytes,
    mime_type: str = "image/jpeg",
    display_name: str = "Gas Meter Image",
    timeout: Optional[float] = None,
) -> Iterator[MediaReference]:
    """
    Stage `data` for the duration of the block and dispose of it on every
    exit path. Disposal failures are logged, never raised, so they cannot
    mask the block's own result or error.
    """
    if not data:
        raise StagingFailed("no image bytes to stage")

    try:
        reference = stager.upload(data, mime_type, display_name, timeout=timeout)
    except StagingFailed:
        raise
    except Exception as e:  # noqa: BLE001
        raise StagingFailed(f"failed to upload: {e}") from e

    try:
        yield reference
    finally:
        try:
            stager.delete(reference.name, timeout=timeout)
        except Exception as e:  # noqa: BLE001
            logger.warning("[STAGING CLEANUP ERROR] %s: %s", reference.name, e)
