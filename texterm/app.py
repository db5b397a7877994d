"""texterm CLI — main application entry point."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_DIR = Path.home() / ".texterm" / "logs"


def _configure_logging(level_name: str, to_stderr: bool) -> Path:
    """Root logger: rotating file under ~/.texterm/logs, optionally stderr."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / "texterm.log"

    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name.upper(), logging.INFO))
    root.handlers.clear()
    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s [pid=%(process)d] %(message)s"
    )
    file_handler = RotatingFileHandler(
        log_file, maxBytes=2_000_000, backupCount=5, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
    if to_stderr:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)
    return log_file


def _load_config(args):
    from texterm.engine.config import ClientConfig
    from texterm.engine.yaml_config import discover_config_path, load_yaml_config

    config = ClientConfig.from_env()
    config_path = args.config or discover_config_path()
    if config_path:
        try:
            config = load_yaml_config(config_path, base=config)
        except FileNotFoundError:
            print(f"Error: config file not found: {config_path}")
            sys.exit(2)
        except Exception as exc:
            print(f"Error: could not load config {config_path}: {exc}")
            sys.exit(2)
    if args.base_url:
        config.base_url = args.base_url
        config.validate()
    return config


async def _list_projects(config) -> int:
    from texterm.engine.api_client import ApiClient
    from texterm.engine.errors import SyncError

    api = ApiClient(config)
    try:
        projects = await api.list_projects()
    except SyncError as exc:
        print(f"Error: {exc}")
        return 1
    finally:
        await api.close()

    if not projects:
        print("No projects.")
        return 0
    for project in projects:
        print(
            f"  {project.name} -- {project.display_name} "
            f"({project.full_path}, {project.session_meta.total} sessions)"
        )
    return 0


async def _run_headless(config, launch) -> None:
    from texterm.adapters.push_channel import PushChannelClient
    from texterm.engine.api_client import ApiClient
    from texterm.engine.workspace import Workspace, run_headless

    api = ApiClient(config)
    workspace = Workspace(
        api, launch, progress_hide_delay=config.progress_hide_delay_seconds,
    )
    push_client = PushChannelClient(config, workspace.slot)
    try:
        await run_headless(workspace, push_client)
    finally:
        await api.close()


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(
        prog="texterm",
        description="texterm — workspace/session sync for the Overleaf terminal client",
    )
    parser.add_argument(
        "--url", metavar="URL",
        help="Initial launch URL (captures ?project=&user= and /session/<id>)",
    )
    parser.add_argument(
        "--config", metavar="PATH",
        help="YAML config file with a client: section",
    )
    parser.add_argument(
        "--base-url", metavar="URL",
        help="Backend base URL (overrides config and TEXTERM_BASE_URL)",
    )
    parser.add_argument(
        "--list", action="store_true",
        help="Fetch and print the project list, then exit (no TUI)",
    )
    parser.add_argument(
        "--headless", action="store_true",
        help="Run the sync engine and push channel without the TUI",
    )
    args = parser.parse_args()

    log_level = os.getenv("TEXTERM_LOG_LEVEL", "INFO").upper()
    log_file = _configure_logging(log_level, to_stderr=args.headless)
    logger = logging.getLogger(__name__)

    config = _load_config(args)
    if config.log_level != log_level:
        logging.getLogger().setLevel(getattr(logging, config.log_level, logging.INFO))
    logger.info(
        "Starting texterm cwd=%s base_url=%s log=%s",
        Path.cwd(), config.base_url, log_file,
    )

    if args.list:
        sys.exit(asyncio.run(_list_projects(config)))

    from texterm.engine.launch_context import LaunchContext

    launch = LaunchContext.from_url(args.url)

    if args.headless:
        try:
            asyncio.run(_run_headless(config, launch))
        except KeyboardInterrupt:
            logger.info("Interrupted; shutting down")
        sys.exit(0)

    from texterm.adapters.push_channel import PushChannelClient
    from texterm.engine.api_client import ApiClient
    from texterm.engine.workspace import Workspace
    from texterm.tui.app import TextermApp

    api = ApiClient(config)
    workspace = Workspace(
        api, launch, progress_hide_delay=config.progress_hide_delay_seconds,
    )
    app = TextermApp(workspace, PushChannelClient(config, workspace.slot))
    app.run()


if __name__ == "__main__":
    main()
