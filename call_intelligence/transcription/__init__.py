"""
Recording transcription package
"""

from .recording_transcriber import RecordingTranscriber

__all__ = ['RecordingTranscriber']
