"""
Command-line front end.

    seraph-llm models [--all] [--scan DIR]
    seraph-llm config show | get NAME | set NAME VALUE
    seraph-llm ask PROMPT [--model ID] [--system TEXT] [--stream] [--retries N]
"""

import argparse
import asyncio
import json
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from seraph_llm.client import LLMClient
from seraph_llm.config import ClientSettings, Settings, get_settings, open_store
from seraph_llm.exceptions import (
    InvalidCredentialFormatError,
    LLMError,
    get_recovery_suggestion,
    get_user_message,
)
from seraph_llm.logging import set_global_level
from seraph_llm.models import DEFAULT_REGISTRY
from seraph_llm.retry import with_retry


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="seraph-llm", description="Chat with remote or local language models")
    sub = parser.add_subparsers(dest="command", required=True)

    models = sub.add_parser("models", help="List models")
    models.add_argument("--all", action="store_true", help="Include models that are not installed")
    models.add_argument("--scan", metavar="DIR", help="Register model files found in DIR")

    config = sub.add_parser("config", help="Show or change client settings")
    config_sub = config.add_subparsers(dest="action", required=True)
    config_sub.add_parser("show", help="Print all settings")
    get = config_sub.add_parser("get", help="Print one setting")
    get.add_argument("name", choices=ClientSettings.FIELDS)
    set_ = config_sub.add_parser("set", help="Change one setting (empty value clears it)")
    set_.add_argument("name", choices=ClientSettings.FIELDS)
    set_.add_argument("value")

    ask = sub.add_parser("ask", help="Send one prompt")
    ask.add_argument("prompt")
    ask.add_argument("--model", help="Model id (default: configured default model)")
    ask.add_argument("--system", default="", help="System prompt")
    ask.add_argument("--stream", action="store_true", help="Print the reply as it arrives")
    ask.add_argument("--temperature", type=float, help="Override temperature for --stream")
    ask.add_argument("--retries", type=int, default=1, help="Attempts for retryable errors (default: 1)")

    return parser


def _cmd_models(client: LLMClient, args: argparse.Namespace) -> int:
    if args.scan:
        found = client.registry.scan_local(args.scan)
        print(f"Registered {len(found)} local model(s) from {args.scan}", file=sys.stderr)

    models = list(client.registry) if args.all else client.list_available_models()
    for model in models:
        kind = "remote" if model.requires_credential else "local"
        marker = "" if client.is_available(model) else "  (not installed)"
        default = " *" if model.id == client.settings.default_model_id else ""
        print(f"{model.id:<24} {kind:<7} {model.name}{default}{marker}")
    return 0


def _cmd_config(client: LLMClient, args: argparse.Namespace) -> int:
    settings = client.settings
    if args.action == "show":
        print(json.dumps(settings.to_dict(), indent=2))
    elif args.action == "get":
        if args.name == "api_key":
            print("set" if client.validate_credential(settings.api_key) else "not set")
        else:
            print(getattr(settings, args.name))
    else:
        value = args.value or None
        if args.name == "api_key" and value is not None and not client.validate_credential(value):
            raise InvalidCredentialFormatError("API key is blank")
        try:
            settings.update(**{args.name: value})
        except ValueError as e:
            print(f"error: {e}", file=sys.stderr)
            return 2
    return 0


async def _cmd_ask(client: LLMClient, args: argparse.Namespace) -> int:
    model = client.resolve_model(args.model)
    if args.model and (model is None or model.id != args.model):
        print(f"Unknown model '{args.model}', using '{model.id if model else None}'", file=sys.stderr)

    if args.stream:
        async for chunk in client.stream_chunks(args.prompt, model, args.system, args.temperature):
            print(chunk, end="", flush=True)
        print()
        return 0

    reply = await with_retry(
        client.generate, args.prompt, model, args.system, max_attempts=max(1, args.retries)
    )
    print(reply)
    return 0


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        settings = settings or get_settings()
        set_global_level(settings.log.level)
        store = open_store(settings)
    except ValueError as e:
        print(f"error: invalid configuration: {e}", file=sys.stderr)
        return 2

    client = LLMClient(
        settings=ClientSettings(store),
        registry=DEFAULT_REGISTRY.copy(),
        timeout=settings.http.timeout,
    )

    try:
        if args.command == "models":
            return _cmd_models(client, args)
        if args.command == "config":
            return _cmd_config(client, args)
        return asyncio.run(_cmd_ask(client, args))
    except LLMError as e:
        print(f"error: {get_user_message(e)}", file=sys.stderr)
        print(get_recovery_suggestion(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
