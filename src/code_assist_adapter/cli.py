"""
Command line entry point.

    code-assist generate "Write Hello World in Rust" --model gemini-3-flash-preview
    code-assist projects
    code-assist clear-cache

The access token comes from ``--token``, ``GCLOUD_ACCESS_TOKEN`` or the
gemini-cli credential cache, in that order. The project comes from
``--project`` or ``GCLOUD_PROJECT_ID``; without either, the first ACTIVE
project visible to the token is used.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from collections.abc import Sequence
from typing import TextIO

from code_assist_adapter.auth import (
    CachedCredentialsTokenSource,
    EnvironmentTokenSource,
    StaticTokenSource,
    TokenSource,
    list_projects,
    resolve_token,
)
from code_assist_adapter.client import CodeAssistClient
from code_assist_adapter.config import AdapterConfig, load_config
from code_assist_adapter.constants import PROJECT_ID_ENV_VAR
from code_assist_adapter.exceptions import AdapterError, ConfigurationError
from code_assist_adapter.gemini_models import (
    Content,
    GenerateContentRequest,
    GenerationConfig,
    Role,
)
from code_assist_adapter.logging_utils import (
    configure_logging,
    get_logger,
    install_redaction_filter,
)

EXIT_OK = 0
EXIT_ERROR = 1

log = get_logger(__name__)


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="code-assist",
        description="Talk to Gemini through the Code Assist backend",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--token", help="OAuth2 access token (default: $GCLOUD_ACCESS_TOKEN)")
    parser.add_argument("--credentials", help="gemini-cli credential cache file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate content for a prompt")
    generate.add_argument("prompt")
    generate.add_argument("--project", default=os.getenv(PROJECT_ID_ENV_VAR))
    generate.add_argument("--model", help="Model id, e.g. gemini-3-flash-preview")
    generate.add_argument("--system", help="System instruction")
    generate.add_argument("--max-output-tokens", type=int, dest="max_output_tokens")
    generate.add_argument("--temperature", type=float)
    generate.add_argument(
        "--no-stream",
        action="store_false",
        dest="stream",
        help="Wait for the full response instead of streaming",
    )
    generate.add_argument(
        "--skip-onboarding",
        action="store_true",
        help="Only run the handshake before generating",
    )

    subparsers.add_parser("projects", help="List ACTIVE Google Cloud projects")
    subparsers.add_parser("clear-cache", help="Delete the cached gemini-cli credentials")
    return parser


def _token_sources(args: argparse.Namespace) -> list[TokenSource]:
    sources: list[TokenSource] = []
    if args.token:
        sources.append(StaticTokenSource(args.token))
    sources.append(EnvironmentTokenSource())
    sources.append(CachedCredentialsTokenSource(args.credentials))
    return sources


def build_request(args: argparse.Namespace) -> GenerateContentRequest:
    generation_config = None
    if args.max_output_tokens is not None or args.temperature is not None:
        generation_config = GenerationConfig(
            max_output_tokens=args.max_output_tokens,
            temperature=args.temperature,
        )
    return GenerateContentRequest(
        contents=[Content.from_text(args.prompt, role=Role.USER)],
        system_instruction=Content.from_text(args.system) if args.system else None,
        generation_config=generation_config,
    )


async def _pick_project(client: CodeAssistClient, config: AdapterConfig) -> str:
    projects = await list_projects(
        client.transport, client.auth_token, url=config.resource_manager_url
    )
    if not projects:
        raise ConfigurationError(
            "No active Google Cloud projects found. Please create one or pass --project."
        )
    return projects[0]


async def run_generate(
    args: argparse.Namespace,
    config: AdapterConfig,
    token: str,
    out: TextIO,
    err: TextIO,
) -> int:
    async with CodeAssistClient(token, args.project or "", config=config) as client:
        if args.model:
            client.with_model(args.model)
        if not client.project_id:
            client.set_project_id(await _pick_project(client, config))

        project = await client.prepare_session(onboard=not args.skip_onboarding)
        log.info("session_ready", project=project, model=client.model)

        request = build_request(args)
        if not args.stream:
            response = await client.generate_content(request)
            out.write(response.text + "\n")
            return EXIT_OK

        async with await client.generate_content_stream(request) as stream:
            async for item in stream:
                if item.ok:
                    out.write(item.unwrap().text)
                    out.flush()
                else:
                    err.write(f"\nError: {item.error}\n")
        out.write("\n")
    return EXIT_OK


async def run_projects(config: AdapterConfig, token: str, out: TextIO) -> int:
    async with CodeAssistClient(token, "", config=config) as client:
        for project in await list_projects(
            client.transport, token, url=config.resource_manager_url
        ):
            out.write(project + "\n")
    return EXIT_OK


async def _dispatch(
    args: argparse.Namespace, config: AdapterConfig, out: TextIO, err: TextIO
) -> int:
    if args.command == "clear-cache":
        removed = CachedCredentialsTokenSource(args.credentials).clear_token_cache()
        out.write("Token cache cleared\n" if removed else "No cached token found\n")
        return EXIT_OK

    token = resolve_token(_token_sources(args))
    install_redaction_filter([token])

    if args.command == "projects":
        return await run_projects(config, token, out)
    return await run_generate(args, config, token, out, err)


def main(
    argv: Sequence[str] | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    out = out or sys.stdout
    err = err or sys.stderr
    args = build_cli_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        err.write(f"{e}\n")
        return EXIT_ERROR

    configure_logging(
        args.log_level or config.logging.level.value, config.logging.log_file
    )

    try:
        return asyncio.run(_dispatch(args, config, out, err))
    except AdapterError as e:
        log.error("command_failed", command=args.command, error=str(e))
        err.write(f"Error: {e}\n")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
