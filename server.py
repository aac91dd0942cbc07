#!/usr/bin/env python3
"""
Gemini chat relay server.

Usage:
    python server.py                          # localhost:8080
    python server.py --host 0.0.0.0 -p 3000   # custom address
    python server.py --prompt prompt.txt -t 300 --log relay.log
"""

import argparse
import dataclasses

import uvicorn

from api.main import create_app
from relay.config import Settings, load_base_prompt


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Stateful chat relay for the Gemini API")
    parser.add_argument("--host", help="Host to bind the server to")
    parser.add_argument("-p", "--port", type=int, help="Port to bind the server to")
    parser.add_argument("--prompt", help="Path to a file containing the base prompt")
    parser.add_argument("--log", help="Path to the log file")
    parser.add_argument("-t", "--timeout", type=float, help="Session timeout in seconds")
    parser.add_argument("--retries", type=int, help="Retry failed completion calls this many times")
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    settings = base or Settings.from_env()
    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.prompt:
        overrides["base_prompt"] = load_base_prompt(args.prompt)
    if args.log:
        overrides["log_file"] = args.log
    if args.timeout is not None:
        overrides["session_timeout"] = args.timeout
    if args.retries is not None:
        overrides["gateway_retries"] = args.retries
    return dataclasses.replace(settings, **overrides)


def main(argv=None) -> None:
    settings = settings_from_args(parse_args(argv))
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, reload=False)


if __name__ == "__main__":
    main()
