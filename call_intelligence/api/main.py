"""Call Intelligence FastAPI Application"""

import logging
from datetime import datetime
from typing import Optional, Literal

from fastapi import FastAPI, Request, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from call_intelligence import factory
from call_intelligence.config.settings import get_settings
from call_intelligence.exceptions import (
    AnalysisParseError,
    AnalysisPreconditionError,
    TextGenerationError,
    TranscriptUnavailableError
)
from call_intelligence.pipeline.analysis_service import CallAnalysisService
from call_intelligence.pipeline.digest_service import DigestService
from call_intelligence.search.transcript_store import TranscriptStore, SearchOptions
from call_intelligence.telephony.exceptions import CallNotFoundError, TelephonyAPIError

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Call Intelligence API",
    description="Transcript search, call analysis and team digests",
    version="1.0.0"
)

# Global services (lazy initialized)
_kv_store = None
_kv_ready = False
_transcript_store = None
_analysis_service = None
_digest_service = None


def _get_kv_store():
    global _kv_store, _kv_ready
    if not _kv_ready:
        _kv_store = factory.create_kv_store(get_settings())
        _kv_ready = True
    return _kv_store


def get_transcript_store() -> TranscriptStore:
    global _transcript_store
    if _transcript_store is None:
        _transcript_store = factory.create_transcript_store(get_settings(), _get_kv_store())
    return _transcript_store


def get_analysis_service() -> CallAnalysisService:
    global _analysis_service
    if _analysis_service is None:
        settings = get_settings()
        try:
            _analysis_service = factory.create_analysis_service(
                settings,
                _get_kv_store(),
                transcript_store=get_transcript_store(),
                call_source=factory.create_call_source(settings)
            )
        except TextGenerationError as e:
            raise HTTPException(status_code=503, detail=str(e))
    return _analysis_service


def get_digest_service(
    analysis_service: CallAnalysisService = Depends(get_analysis_service)
) -> DigestService:
    global _digest_service
    if _digest_service is None:
        _digest_service = factory.create_digest_service(get_settings(), _get_kv_store(), analysis_service)
        if _digest_service is None:
            raise HTTPException(status_code=503, detail="Telephony provider not configured")
    return _digest_service


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={'success': False, 'error': message})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return _error(500, f"Internal server error: {exc}")


class AnalyseRequest(BaseModel):
    call_id: int
    force_refresh: bool = False
    # Optional transcript supplied by the caller instead of fetched from telephony
    transcript: Optional[str] = None
    agent_name: str = 'Agent'
    contact_name: str = 'Contact'
    duration: int = 0
    direction: Literal['inbound', 'outbound'] = 'outbound'


class DigestRequest(BaseModel):
    period: Literal['today', 'week', 'month'] = 'today'
    force_refresh: bool = False


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        'status': 'healthy',
        'timestamp': datetime.now().isoformat(),
        'service': 'call_intelligence_api'
    }


@app.get("/api/calls/transcripts")
def list_transcripts(request: Request, store: TranscriptStore = Depends(get_transcript_store)):
    """
    Search transcripts by keyword, or list recent transcripts when no keyword is given

    Query Parameters:
    - keyword (or q, search): Search term
    - fromDate (or from), toDate (or to): ISO dates, toDate inclusive
    - agent: Exact agent name
    - direction: inbound/outbound
    - limit: Maximum results (default: 50)
    """
    params = request.query_params
    keyword = params.get('keyword') or params.get('q') or params.get('search')
    direction = params.get('direction') or None

    try:
        limit = int(params.get('limit', 50))
    except ValueError:
        return _error(400, 'limit must be an integer')

    if direction and direction not in ('inbound', 'outbound'):
        return _error(400, 'direction must be inbound or outbound')

    total_stored = store.count()

    if keyword and keyword.strip():
        options = SearchOptions(
            from_date=params.get('fromDate') or params.get('from'),
            to_date=params.get('toDate') or params.get('to'),
            agent_name=params.get('agent'),
            direction=direction,
            limit=limit
        )

        try:
            results = store.search(keyword.strip(), options)
        except ValueError as e:
            return _error(400, f"Invalid date: {e}")

        return {
            'success': True,
            'data': {
                'results': [result.to_dict() for result in results],
                'total_stored': total_stored,
                'query': keyword,
                'result_count': len(results)
            }
        }

    recent = store.recent(limit)
    return {
        'success': True,
        'data': {
            'results': [record.summary() for record in recent],
            'total_stored': total_stored
        }
    }


@app.get("/api/calls/transcripts/{call_id}")
def get_transcript(call_id: str, store: TranscriptStore = Depends(get_transcript_store)):
    """Fetch one transcript by call id"""
    if not call_id.isdigit():
        return _error(400, 'Invalid call ID')

    transcript = store.fetch_by_id(int(call_id))
    if transcript is None:
        return _error(404, 'Transcript not found. This call may not have been transcribed yet.')

    return {'success': True, 'data': transcript.to_dict()}


@app.post("/api/calls/analyse")
def analyse_call(body: AnalyseRequest, service: CallAnalysisService = Depends(get_analysis_service)):
    """Analyse one call (cache-checked unless force_refresh)"""
    try:
        if body.transcript is not None:
            outcome = service.analyse_transcript(
                call_id=body.call_id,
                transcript=body.transcript,
                agent_name=body.agent_name,
                contact_name=body.contact_name,
                duration=body.duration,
                direction=body.direction,
                force_refresh=body.force_refresh
            )
        else:
            outcome = service.analyse_call(body.call_id, force_refresh=body.force_refresh)

    except AnalysisPreconditionError as e:
        return _error(400, str(e))
    except (TranscriptUnavailableError, CallNotFoundError) as e:
        return _error(404, str(e))
    except (TextGenerationError, AnalysisParseError, TelephonyAPIError) as e:
        logger.error(f"Error analysing call {body.call_id}: {e}")
        return _error(502, str(e))

    return {'success': True, 'data': outcome.analysis.model_dump(), 'cached': outcome.cached}


@app.post("/api/calls/digest")
def generate_digest(body: DigestRequest, service: DigestService = Depends(get_digest_service)):
    """Team digest for a period; force_refresh bypasses the digest cache"""
    try:
        outcome = service.get_digest(body.period, force_refresh=body.force_refresh)
    except (TextGenerationError, AnalysisParseError, TelephonyAPIError) as e:
        logger.error(f"Error generating {body.period} digest: {e}")
        return _error(502, f"Failed to generate digest: {e}")

    return {
        'success': True,
        'data': outcome.digest.model_dump(),
        'cached': outcome.cached,
        'calls_selected': outcome.selected,
        'calls_analysed': outcome.analysed
    }


def main():
    import uvicorn

    settings = get_settings()
    factory.configure_logging(settings)
    uvicorn.run(app, host="0.0.0.0", port=settings.api_port)


if __name__ == "__main__":
    main()
