"""Internal API routers — /market-data, /entries, /ict-signals endpoints.

No business logic, no DB access. Delegates to the engine and repos.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

logger = logging.getLogger("ictsignal")
router = APIRouter()

# ── Shared state (set during app startup) ────────────────────────────────

_engine = None       # Set via configure_routers()
_bar_repo = None     # Set via configure_routers()
_signal_repo = None  # Set via configure_routers()


def configure_routers(engine=None, bar_repo=None, signal_repo=None) -> None:
    """Inject dependencies from the application startup.

    Args:
        engine: A ``SignalEngine`` instance (or duck-type for tests).
        bar_repo: A ``BarRepo`` instance.
        signal_repo: A ``SignalRepo`` instance.
    """
    global _engine, _bar_repo, _signal_repo  # noqa: PLW0603
    _engine = engine
    _bar_repo = bar_repo
    _signal_repo = signal_repo


def _error_response(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": str(exc),
            "details": "Check server logs for more information",
        },
    )


def _not_configured() -> JSONResponse:
    return _error_response(RuntimeError("Signal engine not configured"), 503)


# ── Market data ──────────────────────────────────────────────────────────


@router.get("/market-data")
async def get_market_data(limit: int = Query(default=200, ge=1, le=1000)):
    """Return the latest stored bars, newest first."""
    if _bar_repo is None:
        return {"data": []}
    try:
        return {"data": _bar_repo.get_latest(limit=limit)}
    except Exception as exc:
        logger.exception("Error reading market data")
        return _error_response(exc)


@router.post("/market-data")
async def post_market_data():
    """Fetch fresh bars for every configured asset and store them."""
    if _engine is None:
        return _not_configured()
    logger.info("Starting market data fetch...")
    try:
        processed = await _engine.refresh_market_data()
    except Exception as exc:
        logger.exception("Error in market data refresh")
        return _error_response(exc)
    return {
        "success": True,
        "recordsProcessed": processed,
        "message": "Market data updated successfully",
    }


# ── Signals ──────────────────────────────────────────────────────────────


def _list_signals(limit: int, asset: Optional[str]):
    if _signal_repo is None:
        return {"signals": []}
    try:
        return {"signals": _signal_repo.get_signals(limit=limit, asset=asset)}
    except Exception as exc:
        logger.exception("Error reading signals")
        return _error_response(exc)


async def _run_generator(generator_name: str, label: str):
    if _engine is None:
        return _not_configured()
    logger.info("Generating %s signals...", label)
    try:
        signals = await _engine.generate_signals(generator_name)
    except Exception as exc:
        logger.exception("Error generating %s signals", label)
        return _error_response(exc)
    return {
        "success": True,
        "signals": [s.to_dict() for s in signals],
        "message": f"Generated {len(signals)} {label} signals",
    }


@router.get("/entries")
async def get_entries(
    limit: int = Query(default=50, ge=1, le=200),
    asset: Optional[str] = Query(default=None),
):
    """Return recent stored signals, newest first."""
    return _list_signals(limit, asset)


@router.post("/entries")
async def post_entries():
    """Run the pattern-based entry generator for every asset."""
    return await _run_generator("entries", "ICT entry")


@router.get("/ict-signals")
async def get_ict_signals(
    limit: int = Query(default=50, ge=1, le=200),
    asset: Optional[str] = Query(default=None),
):
    """Return recent stored signals, newest first."""
    return _list_signals(limit, asset)


@router.post("/ict-signals")
async def post_ict_signals():
    """Run the liquidity-sweep generator for every asset."""
    return await _run_generator("ict", "ICT")
