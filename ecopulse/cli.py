"""EcoPulse CLI - unified entry point for the forecasting service and batch jobs."""

import argparse
import asyncio
import json
import logging
import sys

logger = logging.getLogger("ecopulse.cli")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="ecopulse",
        description="EcoPulse - building energy and water consumption forecasting",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging")
    parser.add_argument("--quiet", action="store_true", help="Only show WARNING and above")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Start API, forecast cycle and accuracy evaluator")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: ECOPULSE_API_PORT or 5080)")
    serve_parser.add_argument("--host", default=None, help="Host (default: ECOPULSE_API_HOST or 0.0.0.0)")

    subparsers.add_parser("train", help="Train energy and water models from stored readings")
    subparsers.add_parser("forecast", help="Run a single forecast cycle")
    subparsers.add_parser("evaluate", help="Score stored forecasts against realized consumption")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    log_level = "INFO"
    if args.verbose:
        log_level = "DEBUG"
    elif args.quiet:
        log_level = "WARNING"
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    _dispatch(args, log_level)


def _dispatch(args, log_level: str):
    """Route CLI commands to hub or engine functions."""
    from ecopulse.engine.config import AppConfig

    config = AppConfig.from_env()
    config.paths.ensure_dirs()

    if args.command == "serve":
        if args.host:
            config.api.host = args.host
        if args.port:
            config.api.port = args.port
        asyncio.run(_serve(config, log_level))
    elif args.command == "train":
        print(json.dumps(asyncio.run(_train(config)), indent=2, default=str))
    elif args.command == "forecast":
        print(json.dumps(asyncio.run(_forecast_once(config)), indent=2, default=str))
    elif args.command == "evaluate":
        results = asyncio.run(_evaluate_once(config))
        print(json.dumps([vars(r) for r in results], indent=2))
    else:
        print(f"Unknown command: {args.command}")
        sys.exit(1)


async def build_hub(config):
    """Create and initialize a hub with the forecast and accuracy modules registered."""
    from ecopulse.engine.predictions.predictor import load_predictors
    from ecopulse.engine.storage.model_io import ModelIO
    from ecopulse.hub.core import ForecastHub
    from ecopulse.hub.metrics import PrometheusMetricsSink
    from ecopulse.hub.notify import build_notifier
    from ecopulse.modules.accuracy import AccuracyModule
    from ecopulse.modules.forecast_cycle import ForecastCycleModule
    from ecopulse.shared.reading_store import ReadingStore

    store = ReadingStore(config.store.db_path, query_timeout=config.store.query_timeout)
    hub = ForecastHub(store, PrometheusMetricsSink())
    await hub.initialize()

    # Predictor choice is fixed for the lifetime of the process
    predictors = load_predictors(ModelIO(config.paths.models_dir))
    notifier = build_notifier(config.smtp, config.telegram)

    for module in (
        ForecastCycleModule(hub, predictors, notifier, config.forecast),
        AccuracyModule(hub, config.accuracy),
    ):
        hub.register_module(module)
        try:
            await module.initialize()
            hub.mark_module_running(module.module_id)
        except Exception:
            hub.mark_module_failed(module.module_id)
            raise
    return hub


async def _serve(config, log_level: str = "INFO"):
    """Start the API and both recurring jobs until interrupted."""
    import uvicorn

    from ecopulse.hub.api import create_api

    logger.info("=" * 70)
    logger.info("EcoPulse - consumption forecasting")
    logger.info("=" * 70)
    logger.info(f"Store: {config.store.db_path}")
    logger.info(f"Models: {config.paths.models_dir}")
    logger.info(f"Server: http://{config.api.host}:{config.api.port}")
    logger.info("=" * 70)

    hub = await build_hub(config)
    await hub.get_module("forecast_cycle").schedule()
    await hub.get_module("accuracy").schedule()

    app = create_api(hub)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.api.host,
            port=config.api.port,
            log_level=log_level.lower(),
            access_log=(log_level != "WARNING"),
        )
    )
    try:
        await server.serve()
    finally:
        if hub.is_running():
            await hub.shutdown()


async def _train(config):
    from ecopulse.engine.models.training import train_all_models
    from ecopulse.shared.reading_store import ReadingStore

    store = ReadingStore(config.store.db_path, query_timeout=config.store.query_timeout)
    await store.initialize()
    try:
        return await train_all_models(store, config)
    finally:
        await store.close()


async def _forecast_once(config):
    hub = await build_hub(config)
    try:
        return await hub.get_module("forecast_cycle").run_cycle()
    finally:
        await hub.shutdown()


async def _evaluate_once(config):
    hub = await build_hub(config)
    try:
        return await hub.get_module("accuracy").evaluate()
    finally:
        await hub.shutdown()


if __name__ == "__main__":
    main()
