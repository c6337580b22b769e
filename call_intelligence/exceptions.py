"""
Exceptions raised by the call intelligence pipeline
"""


class CallIntelligenceError(Exception):
    """
    Base exception for pipeline errors
    """
    pass


class KeyValueStoreError(CallIntelligenceError):
    """
    Raised when the key-value store cannot be read or written
    """
    pass


class TextGenerationError(CallIntelligenceError):
    """
    Raised when the text-generation service call fails or times out
    """
    pass


class AnalysisParseError(CallIntelligenceError):
    """
    Raised when a text-generation response is not valid structured data
    """
    def __init__(self, message: str, raw_response: str = None):
        super().__init__(message)
        self.raw_response = raw_response


class AnalysisPreconditionError(CallIntelligenceError):
    """
    Raised when a call is not worth analysing (too short, unanswered, thin transcript)
    """
    def __init__(self, message: str, call_id: int = None):
        super().__init__(message)
        self.call_id = call_id


class TranscriptUnavailableError(CallIntelligenceError):
    """
    Raised when no transcript can be obtained for a call
    """
    def __init__(self, message: str, call_id: int = None):
        super().__init__(message)
        self.call_id = call_id
