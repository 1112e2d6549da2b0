"""ICT Signal Engine — application entry point.

Boots the FastAPI internal server and provides the CLI entry point for
serve, fetch, and analyze modes.
"""

import logging

from fastapi import FastAPI

from ictsignal.api.routers import router

app = FastAPI(title="ICT Signal Engine API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("ictsignal")


@app.get("/health")
async def health():
    """Liveness check."""
    return {"status": "ok"}


def build_engine(config):
    """Wire the feed, repos and engine from *config*.

    Initializes the database and hands the pieces to the routers.
    """
    from ictsignal.api.routers import configure_routers
    from ictsignal.engine import SignalEngine
    from ictsignal.feed.alpha_vantage_client import AlphaVantageClient
    from ictsignal.feed.rate_limiter import RateLimiter
    from ictsignal.repos.bar_repo import BarRepo
    from ictsignal.repos.db import init_db
    from ictsignal.repos.signal_repo import SignalRepo

    init_db(config.db_path)

    feed = AlphaVantageClient(config, RateLimiter(config.rate_limit_seconds))
    bar_repo = BarRepo(config.db_path)
    signal_repo = SignalRepo(config.db_path)
    engine = SignalEngine(
        config=config, feed=feed, bar_repo=bar_repo, signal_repo=signal_repo,
    )
    configure_routers(engine=engine, bar_repo=bar_repo, signal_repo=signal_repo)
    return engine


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli() -> None:
    """Parse CLI arguments and dispatch to the appropriate mode."""
    import argparse
    import asyncio

    from ictsignal.config import load_config

    parser = argparse.ArgumentParser(description="ICT signal engine")
    parser.add_argument(
        "--mode",
        choices=["serve", "fetch", "analyze"],
        default="serve",
        help="Run the API server, fetch bars once, or analyse once (default: serve)",
    )
    parser.add_argument(
        "--sweep",
        action="store_true",
        help="In analyze mode, use the liquidity-sweep generator",
    )
    args = parser.parse_args()

    config = load_config()

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    engine = build_engine(config)

    if args.mode == "fetch":
        count = asyncio.run(engine.refresh_market_data())
        logger.info("Fetch complete: %d record(s).", count)
    elif args.mode == "analyze":
        generator = "ict" if args.sweep else "entries"
        signals = asyncio.run(engine.generate_signals(generator))
        for s in signals:
            logger.info(
                "%s %s %s entry=%.5f sl=%.5f tp=%.5f conf=%.2f",
                s.asset, s.strategy, s.bias,
                s.entry_price, s.stop_loss, s.take_profit, s.confidence,
            )
        logger.info("Analysis complete: %d signal(s).", len(signals))
    else:
        import uvicorn

        logger.info("Starting API server on port %d.", config.api_port)
        uvicorn.run(app, host="0.0.0.0", port=config.api_port, log_level="info")


if __name__ == "__main__":
    _run_cli()
