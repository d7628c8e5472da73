"""
Speech synthesis.

ElevenLabsSynthesizer turns narration text into MP3 bytes. UI voice
selectors map to provider voice ids through a fixed table that is checked at
import time; unknown selectors use the documented default (female-calm).
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Protocol

import httpx

from ..errors import SynthesisError
from ..settings import Settings

logger = logging.getLogger(__name__)


class VoiceSelector(str, Enum):
    MALE_ENERGETIC = "male-energetic"
    FEMALE_CALM = "female-calm"
    MALE_DEEP = "male-deep"
    FEMALE_ENTHUSIASTIC = "female-enthusiastic"


ELEVENLABS_VOICE_IDS: dict[VoiceSelector, str] = {
    VoiceSelector.MALE_ENERGETIC: "ErXwobaYiN019PkySvjV",       # Antoni
    VoiceSelector.FEMALE_CALM: "21m00Tcm4TlvDq8ikWAM",          # Rachel
    VoiceSelector.MALE_DEEP: "pNInz6obpgDQGcFmaJgB",            # Adam
    VoiceSelector.FEMALE_ENTHUSIASTIC: "EXAVITQu4vr4xnSDxMaL",  # Bella
}
DEFAULT_VOICE = VoiceSelector.FEMALE_CALM


def _check_voice_table() -> None:
    missing = [v.value for v in VoiceSelector if not ELEVENLABS_VOICE_IDS.get(v)]
    if missing:
        raise RuntimeError(f"voice selectors without a provider voice id: {missing}")


_check_voice_table()


def resolve_voice_id(selector: str) -> str:
    """Provider voice id for a UI selector; unknown selectors get the default."""
    try:
        voice = VoiceSelector(selector.strip().lower())
    except ValueError:
        logger.info("Unknown voice selector %r — using %s", selector, DEFAULT_VOICE.value)
        voice = DEFAULT_VOICE
    return ELEVENLABS_VOICE_IDS[voice]


class SpeechSynthesizer(Protocol):
    def synthesize(self, text: str, voice_selector: str) -> bytes:
        ...


class ElevenLabsSynthesizer:
    """
    ElevenLabs text-to-speech client (MP3 44.1 kHz / 128 kbps).

    No retries: a failed call is terminal for the request, and the provider's
    response body is carried in the SynthesisError message.
    """

    OUTPUT_FORMAT = "mp3_44100_128"

    def __init__(
        self,
        api_key: str,
        api_base: str = "https://api.elevenlabs.io",
        model_id: str = "eleven_multilingual_v2",
        timeout: float = 60.0,
        stability: float = 0.4,
        similarity_boost: float = 0.85,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.model_id = model_id
        self.timeout = timeout
        self.stability = stability
        self.similarity_boost = similarity_boost
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "ElevenLabsSynthesizer":
        return cls(
            api_key=settings.elevenlabs_api_key,
            api_base=settings.elevenlabs_api_base,
            model_id=settings.elevenlabs_model_id,
            timeout=settings.http_timeout_seconds,
        )

    def synthesize(self, text: str, voice_selector: str) -> bytes:
        if not self.api_key:
            raise SynthesisError("ElevenLabs API key is not configured (STORYREEL_ELEVENLABS_API_KEY)")

        voice_id = resolve_voice_id(voice_selector)
        url = f"{self.api_base}/v1/text-to-speech/{voice_id}"
        params = {"optimize_streaming_latency": "0", "output_format": self.OUTPUT_FORMAT}
        headers = {"xi-api-key": self.api_key, "Content-Type": "application/json"}
        payload = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": {
                "stability": self.stability,
                "similarity_boost": self.similarity_boost,
            },
        }

        logger.info("TTS request | voice=%s | chars=%d", voice_id, len(text))
        try:
            response = self._post(url, params=params, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise SynthesisError(f"TTS request failed: {exc}") from exc

        if response.status_code >= 400:
            raise SynthesisError(f"TTS error {response.status_code}: {response.text}")
        if not response.content:
            raise SynthesisError("TTS error: provider returned an empty body")
        return response.content

    def _post(self, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return self._client.post(url, **kwargs)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(url, **kwargs)
