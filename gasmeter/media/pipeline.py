"""
Gas-meter reading pipeline.

    image bytes → stage → structured extraction → (resolve '?' digits)? → result

Each run is a linear sequence of blocking calls. The session carrying the
last confirmed reading is passed in and a new one is returned, so runs with
separate sessions never share state.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Tuple

from gasmeter.config import Settings
from gasmeter.errors import DisambiguationFailed, InferenceFailed, MeterReaderError
from gasmeter.media.disambiguator import resolve_ambiguous_digits
from gasmeter.media.models import ReadingResult, ReadingSession
from gasmeter.media.prompts import READ_GAUGE_PROMPT, SYSTEM_PROMPT
from gasmeter.media.storage import MediaStager, staged_media
from gasmeter.media.validator import load_schema, validate_reading_payload
from gasmeter.services.inference import InferenceGateway, SamplingConfig
from gasmeter.utils.time import format_elapsed, now_utc

logger = logging.getLogger(__name__)

IMAGE_MIME_TYPE = "image/jpeg"
IMAGE_DISPLAY_NAME = "Gas Meter Image"


def extract_reading(
    image_bytes: bytes,
    session: ReadingSession,
    *,
    gateway: InferenceGateway,
    stager: MediaStager,
    sampling: Optional[SamplingConfig] = None,
    system_prompt: str = SYSTEM_PROMPT,
    prompt: str = READ_GAUGE_PROMPT,
    verify_resolution: bool = True,
    timeout: Optional[float] = None,
) -> Tuple[ReadingResult, ReadingSession]:
    """
    Read a gas-meter photo end-to-end.

    Returns the final result together with the session to pass into the
    next call. The incoming session is left untouched on failure.

    Raises:
        StagingFailed: the image could not be staged.
        InferenceFailed: the extraction call failed or returned a bad payload.
        DisambiguationFailed: uncertain digits could not be resolved.
    """
    sampling = sampling or SamplingConfig()
    start = time.monotonic()

    with staged_media(
        stager,
        image_bytes,
        mime_type=IMAGE_MIME_TYPE,
        display_name=IMAGE_DISPLAY_NAME,
        timeout=timeout,
    ) as media:
        try:
            raw = gateway.generate_structured(
                media,
                system_prompt,
                prompt,
                load_schema(),
                sampling,
                timeout=timeout,
            )
        except MeterReaderError:
            raise
        except Exception as e:  # noqa: BLE001
            raise InferenceFailed(f"failed to analyze: {e}") from e

        ok, err = validate_reading_payload(raw)
        if not ok:
            raise InferenceFailed(f"failed to analyze: unexpected payload {raw!r}: {err}")

        result = ReadingResult.from_raw(raw)

        if result.has_uncertain_digits:
            logger.warning("Ambiguous digits found in the reading: %s", result.reading)
            try:
                resolved = resolve_ambiguous_digits(
                    result.reading,
                    session.last_reading,
                    gateway=gateway,
                    sampling=sampling,
                    verify=verify_resolution,
                    timeout=timeout,
                )
            except MeterReaderError as e:
                raise DisambiguationFailed(f"failed to guess ambiguous digits: {e}") from e
            result.ambiguous_reading = result.reading
            result.reading = resolved

    result.elapsed = format_elapsed(time.monotonic() - start)
    result.read_at = now_utc()

    logger.info("[READ] %s date=%r in %s", result.reading, result.date, result.elapsed)
    return result, ReadingSession(last_reading=result.reading)


class GasMeterReader:
    """
    Holds one reading session and feeds it through sequential reads.

    Not safe for concurrent use: give each concurrent caller its own
    reader, or serialize calls to a shared one.
    """

    def __init__(
        self,
        gateway: InferenceGateway,
        stager: MediaStager,
        sampling: Optional[SamplingConfig] = None,
        system_prompt: str = SYSTEM_PROMPT,
        prompt: str = READ_GAUGE_PROMPT,
        verify_resolution: bool = True,
        session: Optional[ReadingSession] = None,
    ) -> None:
        self.gateway = gateway
        self.stager = stager
        self.sampling = sampling or SamplingConfig()
        self.system_prompt = system_prompt
        self.prompt = prompt
        self.verify_resolution = verify_resolution
        self.session = session or ReadingSession()

    @classmethod
    def from_settings(cls, settings: Settings) -> "GasMeterReader":
        # Local imports keep the concrete clients out of the pipeline's import path.
        from gasmeter.media.storage import InlineMediaStager, SupabaseMediaStager
        from gasmeter.services import supabase
        from gasmeter.services.inference import OpenAIGateway

        if settings.stager == "supabase":
            stager: MediaStager = SupabaseMediaStager(
                supabase.get_client(settings),
                bucket=settings.bucket,
                signed_url_ttl=settings.signed_url_ttl,
            )
        else:
            stager = InlineMediaStager()

        return cls(
            gateway=OpenAIGateway.from_settings(settings),
            stager=stager,
            sampling=SamplingConfig.from_settings(settings),
            system_prompt=settings.system_prompt or SYSTEM_PROMPT,
            prompt=settings.prompt or READ_GAUGE_PROMPT,
            verify_resolution=settings.verify_resolution,
        )

    @property
    def last_reading(self) -> str:
        return self.session.last_reading

    def reset(self) -> None:
        self.session = ReadingSession()

    def read(self, image_bytes: bytes, timeout: Optional[float] = None) -> ReadingResult:
        result, self.session = extract_reading(
            image_bytes,
            self.session,
            gateway=self.gateway,
            stager=self.stager,
            sampling=self.sampling,
            system_prompt=self.system_prompt,
            prompt=self.prompt,
            verify_resolution=self.verify_resolution,
            timeout=timeout,
        )
        return result
