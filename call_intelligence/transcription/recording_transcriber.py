"""
Recording Transcriber
Downloads a completed call recording and transcribes it with OpenAI Whisper
"""

import logging
from typing import Optional, Any, List

import openai
import requests
from openai import OpenAI
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from call_intelligence.exceptions import TranscriptUnavailableError

logger = logging.getLogger(__name__)


def format_segments(segments: List[Any]) -> str:
    """Render Whisper segments as '[m:ss] text' lines"""
    lines = []
    for segment in segments:
        start = getattr(segment, 'start', None)
        text = getattr(segment, 'text', None)
        if isinstance(segment, dict):
            start, text = segment.get('start'), segment.get('text')

        minutes, seconds = divmod(int(start or 0), 60)
        lines.append(f"[{minutes}:{seconds:02d}] {(text or '').strip()}")
    return '\n'.join(lines)


class RecordingTranscriber:
    """
    Batch transcription of complete call recordings
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = 'whisper-1',
        language: str = 'en',
        timeout: float = 120.0,
        client: Optional[OpenAI] = None
    ):
        self.model = model
        self.language = language
        self.timeout = timeout
        self.client = client or OpenAI(api_key=api_key, timeout=timeout)

        logger.info(f"Recording transcriber initialized with {self.model}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=20),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    def _download(self, recording_url: str) -> bytes:
        response = requests.get(recording_url, timeout=self.timeout)
        if response.status_code != 200:
            raise TranscriptUnavailableError(f"Failed to download recording: {response.status_code}")
        return response.content

    def transcribe(self, recording_url: str, agent_name: str, contact_name: str) -> str:
        """
        Transcribe a recording

        Args:
            recording_url: Short-lived recording URL
            agent_name: Rep name, used as a spelling hint
            contact_name: Contact name, used as a spelling hint

        Returns:
            Transcript text with segment timestamps

        Raises:
            TranscriptUnavailableError: If the recording cannot be downloaded or transcribed
        """
        try:
            audio = self._download(recording_url)
        except requests.RequestException as e:
            raise TranscriptUnavailableError(f"Failed to download recording: {e}") from e

        logger.info(f"Downloaded recording ({len(audio)} bytes), transcribing with {self.model}")

        try:
            transcription = self.client.audio.transcriptions.create(
                model=self.model,
                file=('recording.mp3', audio, 'audio/mpeg'),
                language=self.language,
                response_format='verbose_json',
                prompt=f"Sales call between {agent_name} and {contact_name}."
            )
        except openai.OpenAIError as e:
            raise TranscriptUnavailableError(f"Transcription failed: {e}") from e

        segments = getattr(transcription, 'segments', None)
        if segments:
            return format_segments(segments)

        return transcription.text
