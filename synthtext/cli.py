"""`synthtext`: command line wrapper around the TextSynth API.

Run from source with:
  `python -m synthtext --help`
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from synthtext.config.files import (
    ConfigFile,
    default_config_path,
    load_settings,
    write_config_file,
)
from synthtext.config.settings import Settings
from synthtext.observability import configure_logging
from synthtext.schemas.engine import EnginePreset, parse_engine_definition
from synthtext.schemas.parameters import NonEmptyString
from synthtext.services.client import TextSynthClient
from synthtext.services.completion import execute_now, execute_stream
from synthtext.utils.exceptions import SynthTextError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="synthtext", description="A program which wraps the TextSynth API.")
    p.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Use this configuration file instead of the default one",
    )

    sub = p.add_subparsers(dest="command", required=True)

    lp = sub.add_parser(
        "log-probabilities",
        aliases=["lp", "l"],
        help="Log probability that a continuation is generated after a context",
    )
    lp.add_argument("context", help="If empty, the context is the end-of-text token")
    lp.add_argument("continuation", help="Must be a non-empty string")
    lp.set_defaults(handler=_log_probabilities, needs_config=True)

    tc = sub.add_parser("text-completion", aliases=["tc", "t"], help="Complete and synthesize text")
    tc.add_argument("prompt", help="The input text to complete")
    tc.add_argument(
        "-m",
        "--max-tokens",
        default=None,
        help="Maximum number of tokens to generate (at most the engine's context length)",
    )
    tc.add_argument("-t", "--temperature", default=None, help="Sampling temperature")
    tc.add_argument("-k", "--top-k", default=None, help="Sample among the top_k most likely tokens (0..=1000)")
    tc.add_argument("-p", "--top-p", default=None, help="Cumulative probability threshold (0.0..=1.0)")
    method = tc.add_subparsers(dest="method", required=True)
    now = method.add_parser("now", aliases=["n"], help="Run this text completion now")
    now.add_argument(
        "-u",
        "--until",
        action="append",
        default=[],
        help="Stop when this string is generated (repeatable, at most 5); it is not included in the output",
    )
    now.set_defaults(stream=False)
    stream = method.add_parser("stream", aliases=["s"], help="Print the output as it is generated")
    stream.add_argument("-u", "--until", action="append", default=[], help="Stop sequence (repeatable, at most 5)")
    stream.set_defaults(stream=True)
    tc.set_defaults(handler=_text_completion, needs_config=True)

    config = sub.add_parser("config", aliases=["c"], help="Generate or find the configuration file")
    config_sub = config.add_subparsers(dest="config_cmd", required=True)
    find = config_sub.add_parser("find-path", aliases=["fp", "f"], help="Print the configuration file path")
    find.set_defaults(handler=_config_find_path, needs_config=False)
    gen = config_sub.add_parser("generate", aliases=["g"], help="Generate and write a configuration file")
    gen.add_argument("path", nargs="?", type=Path, default=None, help="Where to write the configuration file")
    gen.add_argument("-a", "--api-key", required=True, help="API key used to authenticate")
    gen.add_argument(
        "-e",
        "--engine-definition",
        default=None,
        help="gptj6b, boris6b, fairseqgpt13b or <id>,<max_tokens>",
    )
    gen.add_argument("-d", "--dump", action="store_true", help="Print the configuration instead of writing it")
    gen.add_argument("-c", "--create", action="store_true", help="Overwrite an existing configuration file")
    gen.set_defaults(handler=_config_generate, needs_config=False)

    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(args.config, read_file=args.needs_config)
    except SynthTextError as exc:
        configure_logging(Settings.model_construct(log_level="INFO"), cli=True)
        logger.error("%s", exc.message)
        return 1

    configure_logging(settings, cli=True)
    try:
        return args.handler(args, settings)
    except SynthTextError as exc:
        logger.error("%s", exc.message)
        logger.debug("error details: %s", exc.to_dict())
        return 1
    except KeyboardInterrupt:
        return 130


def _text_completion(args: argparse.Namespace, settings: Settings) -> int:
    return asyncio.run(_run_text_completion(args, settings))


async def _run_text_completion(args: argparse.Namespace, settings: Settings) -> int:
    async with TextSynthClient(settings) as client:
        request = client.request(
            args.prompt,
            max_tokens=args.max_tokens,
            temperature=args.temperature,
            top_k=args.top_k,
            top_p=args.top_p,
        )
        until = args.until or None

        if args.stream:
            stream = await execute_stream(request, client.transport, stop=until)
            _write(args.prompt)
            async with stream:
                async for fragment in stream:
                    _write(fragment.text)
            _write("\n")
            return 0

        result = await execute_now(request, client.transport, stop=until)
        _write(args.prompt)
        _write(result.text + "\n")
        if result.truncated_prompt:
            logger.info("tip: shorten the prompt to fit the engine's maximum context length")
        if result.total_tokens is not None:
            logger.info("total tokens used: %d", result.total_tokens)
        return 0


def _log_probabilities(args: argparse.Namespace, settings: Settings) -> int:
    return asyncio.run(_run_log_probabilities(args, settings))


async def _run_log_probabilities(args: argparse.Namespace, settings: Settings) -> int:
    continuation = NonEmptyString.new(args.continuation, field="continuation")
    logger.info("the provided context was: '%s'", args.context)
    logger.info("the predicted continuation was: '%s'", continuation)

    async with TextSynthClient(settings) as client:
        result = await client.log_probabilities(args.context, continuation.value)

    _write(f"log probability: {result.log_probability}\n")
    _write(f"is greedy: {str(result.is_greedy).lower()}\n")
    _write(f"total tokens: {result.total_tokens}\n")
    return 0


def _config_find_path(args: argparse.Namespace, settings: Settings) -> int:
    _write(f"{args.config or default_config_path()}\n")
    return 0


def _config_generate(args: argparse.Namespace, settings: Settings) -> int:
    api_key = NonEmptyString.new(args.api_key, field="api_key")
    engine = parse_engine_definition(args.engine_definition) if args.engine_definition else EnginePreset.GPTJ_6B
    config = ConfigFile(api_key=api_key.value, engine_definition=engine)

    if args.dump:
        _write(config.to_json())
        return 0

    path = args.path or args.config or default_config_path()
    write_config_file(config, path, overwrite=args.create)
    return 0


def _write(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
