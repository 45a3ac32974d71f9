"""
CLI entrypoint for gomind_ai.

Examples:
    gomind-ai providers
    gomind-ai resolve --provider anthropic smart
    gomind-ai generate --provider anthropic --model fast "Say hello"
    gomind-ai generate --provider openai,anthropic --model smart "Say hello"
    python -m gomind_ai.cli generate --timeout 20 --retries 5 "Explain backoff"
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from .chain import ChainClient
from .config import ClientConfig, RetryPolicy
from .context import RequestContext
from .exceptions import GomindAIError
from .models import MODEL_ALIASES, resolve_model
from .registry import create_client, provider_info
from .types import AIOptions


def list_providers_command(args: argparse.Namespace) -> int:
    for info in provider_info():
        marker = "✓" if info["available"] else " "
        print(f"[{marker}] {info['name']:<16} {info['description']} (priority {info['priority']})")
    return 0


def resolve_command(args: argparse.Namespace) -> int:
    print(resolve_model(args.provider, args.model or "default"))
    return 0


def generate_command(args: argparse.Namespace) -> int:
    config = ClientConfig(
        request_timeout=args.request_timeout,
        retry=RetryPolicy(max_attempts=args.retries, base_delay=args.backoff),
        log_content=args.log_content,
    )
    if "," in args.provider:
        aliases = [alias.strip() for alias in args.provider.split(",") if alias.strip()]
        client = ChainClient(aliases, config=config)
    else:
        client = create_client(args.provider, base_url=args.base_url, config=config)
    options = AIOptions(
        model=args.model,
        max_tokens=args.max_tokens,
        temperature=args.temperature,
        system_prompt=args.system or "",
    )
    ctx = RequestContext(timeout=args.timeout)
    try:
        response = client.generate(args.prompt, options, ctx=ctx)
    finally:
        close = getattr(client, "close", None)
        if close is not None:
            close()

    if args.json:
        print(json.dumps(response.to_dict(), indent=2))
    else:
        print(response.content)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="gomind_ai provider client CLI")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    providers_parser = subparsers.add_parser("providers", help="List registered providers")
    providers_parser.set_defaults(func=list_providers_command)

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a model alias")
    resolve_parser.add_argument(
        "--provider", default="anthropic", choices=sorted(MODEL_ALIASES), help="Provider alias"
    )
    resolve_parser.add_argument("model", nargs="?", default="default", help="Alias or model id")
    resolve_parser.set_defaults(func=resolve_command)

    generate_parser = subparsers.add_parser("generate", help="Send one prompt")
    generate_parser.add_argument("prompt", help="User prompt")
    generate_parser.add_argument(
        "--provider", default="auto", help="Provider name, 'auto', or a comma-separated failover chain"
    )
    generate_parser.add_argument("--model", default="", help="Alias or concrete model id")
    generate_parser.add_argument("--system", default=None, help="System prompt")
    generate_parser.add_argument("--temperature", type=float, default=0.0)
    generate_parser.add_argument("--max-tokens", type=int, default=0)
    generate_parser.add_argument("--base-url", default=None, help="Override the API root")
    generate_parser.add_argument(
        "--timeout", type=float, default=None, help="Overall deadline in seconds"
    )
    generate_parser.add_argument(
        "--request-timeout", type=float, default=30.0, help="Per-attempt timeout in seconds"
    )
    generate_parser.add_argument("--retries", type=int, default=3, help="Maximum attempts")
    generate_parser.add_argument(
        "--backoff", type=float, default=0.5, help="Backoff base in seconds"
    )
    generate_parser.add_argument(
        "--log-content", action="store_true", help="Include prompt/response text in logs"
    )
    generate_parser.add_argument("--json", action="store_true", help="Print the full response")
    generate_parser.set_defaults(func=generate_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (GomindAIError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
