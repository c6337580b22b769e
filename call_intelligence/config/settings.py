import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


class Settings:
    def __init__(self):
        # Key-value store (Redis); unset means transcript/analysis persistence is skipped
        self.redis_url = os.getenv('REDIS_URL') or os.getenv('KV_URL')
        self.redis_timeout = float(os.getenv('REDIS_TIMEOUT', '5'))

        # Aircall telephony
        self.aircall_api_id = os.getenv('AIRCALL_API_ID')
        self.aircall_api_token = os.getenv('AIRCALL_API_TOKEN')
        self.aircall_base_url = os.getenv('AIRCALL_BASE_URL', 'https://api.aircall.io/v1')
        self.aircall_timeout = _env_int('AIRCALL_TIMEOUT', 30)

        # Text generation
        self.llm_provider = os.getenv('LLM_PROVIDER', 'openrouter')
        self.llm_timeout_seconds = float(os.getenv('LLM_TIMEOUT_SECONDS', '90'))
        self.openai_api_key = os.getenv('OPENAI_API_KEY')
        self.openrouter_api_key = os.getenv('OPENROUTER_API_KEY')

        # Recording transcription
        self.whisper_model = os.getenv('WHISPER_MODEL', 'whisper-1')
        self.transcription_language = os.getenv('TRANSCRIPTION_LANGUAGE', 'en')

        # Analysis thresholds
        self.min_transcript_chars = _env_int('MIN_TRANSCRIPT_CHARS', 50)
        self.min_analysis_duration = _env_int('MIN_ANALYSIS_DURATION', 120)
        self.digest_min_duration = _env_int('DIGEST_MIN_DURATION', 120)
        self.digest_max_calls = _env_int('DIGEST_MAX_CALLS', 20)
        self.analysis_workers = _env_int('ANALYSIS_WORKERS', 4)

        # Search
        self.search_batch_size = _env_int('SEARCH_BATCH_SIZE', 20)
        self.search_scan_limit = _env_int('SEARCH_SCAN_LIMIT', 500)

        # Logging
        self.log_level = os.getenv('LOG_LEVEL', 'INFO')
        self.log_file_path = os.getenv('LOG_FILE_PATH')

        # API
        self.api_port = _env_int('API_PORT', 8081)

    @property
    def aircall_configured(self) -> bool:
        return bool(self.aircall_api_id and self.aircall_api_token)


# Singleton settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
