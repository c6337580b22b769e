"""
Aircall API Client
Calls, transcriptions and period listings from the Aircall REST API
"""

import logging
import time
from datetime import datetime
from typing import Dict, List, Optional, Any

import requests
from requests.adapters import HTTPAdapter
from requests.auth import HTTPBasicAuth
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from call_intelligence.periods import local_now, period_start
from .exceptions import (
    TelephonyAPIError,
    AuthenticationError,
    RateLimitError,
    CallNotFoundError
)
from .models import TelephonyCall, CallSource

logger = logging.getLogger(__name__)


def format_utterances(utterances: List[Dict[str, Any]], agent_name: str, contact_name: str) -> str:
    """
    Render transcription utterances as '[m:ss] Speaker: text' lines

    Args:
        utterances: Items with text, speaker ('agent'/'contact') and timestamp in ms
        agent_name: Display name for agent utterances
        contact_name: Display name for contact utterances

    Returns:
        Transcript text, empty when there are no utterances
    """
    lines = []
    for utterance in utterances:
        speaker = agent_name if utterance.get('speaker') == 'agent' else contact_name
        total_seconds = int(utterance.get('timestamp', 0)) // 1000
        minutes, seconds = divmod(total_seconds, 60)
        lines.append(f"[{minutes}:{seconds:02d}] {speaker}: {utterance.get('text', '')}")
    return '\n'.join(lines)


class AircallClient(CallSource):
    """
    Telephony call source backed by Aircall

    Aircall allows 60 requests/minute; the client only throttles when the
    remaining-request header says the limit is close.
    """

    PER_PAGE = 50
    MAX_PAGES = 200

    def __init__(
        self,
        api_id: str,
        api_token: str,
        base_url: str = 'https://api.aircall.io/v1',
        timeout: int = 30,
        transcriber=None
    ):
        """
        Initialize Aircall client

        Args:
            api_id: Aircall API id
            api_token: Aircall API token
            base_url: API base URL
            timeout: Request timeout in seconds
            transcriber: Optional RecordingTranscriber used when Aircall has no transcription
        """
        if not api_id or not api_token:
            raise AuthenticationError("Missing AIRCALL_API_ID or AIRCALL_API_TOKEN")

        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.transcriber = transcriber

        self.rate_limit_remaining = 60
        self.rate_limit_reset = 0.0

        self.session = requests.Session()
        self.session.auth = HTTPBasicAuth(api_id, api_token)
        self.session.headers.update({'Content-Type': 'application/json'})
        self.session.mount("https://", HTTPAdapter(max_retries=1))

        logger.info("AircallClient initialized")

    def _wait_for_rate_limit(self):
        if self.rate_limit_remaining <= 2 and time.time() < self.rate_limit_reset:
            wait = self.rate_limit_reset - time.time() + 0.5
            logger.info(f"Aircall rate limit: waiting {wait:.1f}s")
            time.sleep(wait)

    def _track_rate_limit(self, response: requests.Response):
        remaining = response.headers.get('x-aircallapi-remaining')
        reset = response.headers.get('x-aircallapi-reset')
        if remaining:
            self.rate_limit_remaining = int(remaining)
        if reset:
            self.rate_limit_reset = float(reset)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout, RateLimitError)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    def _get_with_retry(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self._wait_for_rate_limit()

        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url}")
        response = self.session.get(url, params=params, timeout=self.timeout)
        self._track_rate_limit(response)

        if response.status_code == 429:
            retry_after = max(self.rate_limit_reset - time.time(), 0) + 1
            raise RateLimitError("Aircall rate limit exceeded", retry_after=retry_after, status_code=429)

        if response.status_code == 401:
            raise AuthenticationError("Aircall rejected credentials", status_code=401)

        if response.status_code == 404:
            raise CallNotFoundError(f"Resource not found: {path}", status_code=404)

        if response.status_code >= 400:
            raise TelephonyAPIError(
                f"Aircall API error: {response.status_code}",
                status_code=response.status_code,
                response_data={'body': response.text[:500]}
            )

        return response.json()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        GET an Aircall endpoint with retry on rate limiting and transport errors

        Args:
            path: Path relative to the base URL
            params: Query parameters

        Returns:
            Decoded JSON body

        Raises:
            TelephonyAPIError: On API errors, or transport errors once retries are exhausted
        """
        try:
            return self._get_with_retry(path, params)
        except requests.RequestException as e:
            raise TelephonyAPIError(f"Aircall request to {path} failed: {e}") from e

    def get_call(self, call_id: int) -> TelephonyCall:
        data = self._get(f"/calls/{call_id}")
        return TelephonyCall.from_api(data['call'])

    def list_calls(self, date_from: datetime, date_to: datetime) -> List[TelephonyCall]:
        """
        All calls in a time window, most recent first (handles pagination)

        Args:
            date_from: Window start
            date_to: Window end

        Returns:
            List of calls
        """
        calls: List[TelephonyCall] = []
        page = 1

        while page <= self.MAX_PAGES:
            data = self._get('/calls', params={
                'from': int(date_from.timestamp()),
                'to': int(date_to.timestamp()),
                'order': 'desc',
                'per_page': self.PER_PAGE,
                'page': page
            })

            calls.extend(TelephonyCall.from_api(call) for call in data.get('calls', []))

            if not (data.get('meta') or {}).get('next_page_link'):
                break
            page += 1

        logger.info(f"Fetched {len(calls)} calls from {date_from} to {date_to}")
        return calls

    def list_calls_for_period(self, period: str, now: Optional[datetime] = None) -> List[TelephonyCall]:
        now = now or local_now()
        return self.list_calls(period_start(period, now), now)

    def get_transcription(self, call: TelephonyCall) -> Optional[str]:
        """Aircall's own transcription for a call, None when it does not exist"""
        try:
            data = self._get(f"/calls/{call.id}/transcription")
        except TelephonyAPIError as e:
            logger.warning(f"No transcription available for call {call.id}: {e}")
            return None

        utterances = ((data.get('transcription') or data).get('content') or {}).get('utterances') or []
        if not utterances:
            return None

        return format_utterances(utterances, call.agent_display_name, call.contact_display_name)

    def get_transcript(self, call: TelephonyCall) -> Optional[str]:
        transcript = self.get_transcription(call)
        if transcript:
            return transcript

        if self.transcriber is None:
            return None

        # Recording URLs expire quickly, so fetch a fresh one
        fresh = self.get_call(call.id)
        if not fresh.recording:
            logger.warning(f"No recording for call {call.id}")
            return None

        return self.transcriber.transcribe(fresh.recording, fresh.agent_display_name, fresh.contact_display_name)
