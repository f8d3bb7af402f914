import argparse
import json
import logging
from pathlib import Path

import yaml

from ankirpc.actions import ACTIONS, request_for, version
from ankirpc.config import config_from_env, configure, load_config
from ankirpc.dispatch import dispatch, dispatch_all
from ankirpc.errors import AnkiConnectError, CommunicationError, ConfigError
from ankirpc.log import configure_logging

logger = logging.getLogger(__name__)


def _print_json(value) -> None:
    print(json.dumps(value, indent=2, ensure_ascii=False, default=repr))


def _parse_param(raw: str) -> tuple[str, object]:
    """Parse ``key=value``; values are JSON when they parse, strings otherwise."""
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise ConfigError(f"Parameter must look like key=value, got '{raw}'")
    try:
        return key, json.loads(value)
    except ValueError:
        return key, value


def _collect_params(args) -> dict:
    params: dict = {}
    if args.params:
        try:
            loaded = json.loads(args.params)
        except ValueError as e:
            raise ConfigError(f"--params is not valid JSON: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError("--params must be a JSON object")
        params.update(loaded)
    for raw in args.param:
        key, value = _parse_param(raw)
        params[key] = value
    return params


def _load_batch_file(path: Path) -> list:
    if not path.exists():
        raise ConfigError(f"Batch file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle)
    except yaml.YAMLError as e:
        raise ConfigError(f"Batch file is not valid YAML: {path}: {e}") from None
    if not isinstance(raw, list) or not raw:
        raise ConfigError(f"Batch file must contain a non-empty list: {path}")

    requests = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict) or not isinstance(item.get("action"), str):
            raise ConfigError(f"Batch entry {index} needs an 'action' string")
        params = item.get("params")
        if params is not None and not isinstance(params, dict):
            raise ConfigError(f"Batch entry {index} 'params' must be a mapping")
        try:
            requests.append(request_for(item["action"], params))
        except ValueError as e:
            raise ConfigError(f"Batch entry {index}: {e}") from None
    return requests


def run_call(args):
    """Dispatch a single action and print its result."""
    params = _collect_params(args)
    try:
        request = request_for(args.action, params)
    except ValueError as e:
        raise ConfigError(f"Invalid action '{args.action}': {e}") from None
    _print_json(dispatch(request))


def run_multi(args):
    """Dispatch every action of a batch file in one 'multi' call."""
    requests = _load_batch_file(Path(args.batch_file))
    results = dispatch_all(requests)
    logger.debug(f"Batch returned {len(results)} results")
    _print_json(results)


def run_actions(args):
    """List the declared actions and their arguments."""
    for name in sorted(ACTIONS):
        spec = ACTIONS[name]
        arguments = ", ".join(spec.argument_names)
        print(f"{spec.action:<20} {spec.function_name}({arguments})")


def run_version(args):
    """Print the AnkiConnect API version."""
    print(dispatch(version()))


def _apply_connection_args(args) -> None:
    base = load_config(Path(args.config)) if args.config else config_from_env()
    overrides = {}
    if args.host is not None:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.api_key is not None:
        overrides["api_key"] = args.api_key
    config = configure(base, **overrides)
    logger.debug(f"Using AnkiConnect at {config.url}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="ankirpc",
        description="Send requests to AnkiConnect",
    )
    parser.add_argument("--config", help="YAML connection config file")
    parser.add_argument("--host", help="AnkiConnect host (default 127.0.0.1)")
    parser.add_argument("--port", type=int, help="AnkiConnect port (default 8765)")
    parser.add_argument("--api-key", help="AnkiConnect API key")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    call_parser = subparsers.add_parser("call", help="Dispatch one action")
    call_parser.add_argument("action", help="Action name, e.g. deckNames")
    call_parser.add_argument("--params", help="Action params as a JSON object")
    call_parser.add_argument(
        "--param",
        "-p",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Single param; VALUE is parsed as JSON when possible. Repeatable.",
    )
    call_parser.set_defaults(handler=run_call)

    multi_parser = subparsers.add_parser(
        "multi", help="Dispatch a YAML/JSON list of actions as one batch"
    )
    multi_parser.add_argument(
        "batch_file",
        metavar="FILE",
        help="List of {action, params} entries",
    )
    multi_parser.set_defaults(handler=run_multi)

    actions_parser = subparsers.add_parser("actions", help="List declared actions")
    actions_parser.set_defaults(handler=run_actions)

    version_parser = subparsers.add_parser(
        "version", help="Print the AnkiConnect API version"
    )
    version_parser.set_defaults(handler=run_version)

    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.debug else logging.INFO
    configure_logging(stream_level=log_level, ignore_libs=["urllib3.connectionpool"])

    if not hasattr(args, "handler"):
        parser.print_help()
        return

    try:
        _apply_connection_args(args)
        args.handler(args)
    except ConfigError as e:
        logger.error(str(e))
        raise SystemExit(1)
    except CommunicationError as e:
        logger.error(f"Error connecting to AnkiConnect: {e}")
        logger.error("Make sure Anki is running and AnkiConnect is installed.")
        raise SystemExit(1)
    except AnkiConnectError as e:
        logger.error(f"AnkiConnect request failed: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
