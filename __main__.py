"""CLI entry point for whiteboard-ai.

This module acts as the central entry point for the project's CLI tools.
It delegates commands to the dispatcher, the router and the layout engine.
"""

import argparse
import asyncio
import json
import subprocess
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from whiteboard_ai.board import BoardState
from whiteboard_ai.config import (
    EnvVar,
    get_available_llm_providers,
    get_environment,
    get_environment_info,
    get_role_models,
    list_environment_variables,
)
from whiteboard_ai.core import get_logger, setup_logging

# Load environment variables from .env file
load_dotenv()

logger = get_logger("cli")


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def _load_board(path: Path | None) -> BoardState:
    if path is None:
        return BoardState()
    return BoardState.model_validate(json.loads(path.read_text(encoding="utf-8")))


# =============================================================================
# Run Command
# =============================================================================


def cmd_run(args: argparse.Namespace) -> int:
    """Dispatch one command and print the resulting operation requests."""
    from whiteboard_ai.dispatcher import Backends, CommandDispatcher
    from whiteboard_ai.llm import LLMError
    from whiteboard_ai.orchestrator import ContinuationToken, ExecutionPlanError

    board = _load_board(args.board)

    def on_progress(event) -> None:
        logger.info(f"Progress {event.step}/{event.total_steps}: {event.task}")

    try:
        dispatcher = CommandDispatcher(
            Backends.from_environment(api_key=args.api_key),
            use_intent_classifier=False if args.no_intent else None,
        )
        if args.resume:
            token = ContinuationToken.model_validate(json.loads(args.resume.read_text(encoding="utf-8")))
            result = asyncio.run(dispatcher.resume(token, board, args.created_ids, on_progress))
        else:
            if not args.message:
                logger.error("A command is required unless --resume is given")
                return 1
            result = asyncio.run(dispatcher.dispatch(args.message, board, on_progress))
    except (LLMError, ExecutionPlanError, ValueError) as e:
        logger.error(f"Command failed: {e}")
        return 1

    logger.info(f"Handled by {result.tier.value} ({result.agent_name})")
    _print_json(result.to_dict())
    return 0


def handle_run_command(argv: list[str]) -> int:
    """Handle run-specific arguments."""
    parser = argparse.ArgumentParser(
        prog="python . run",
        description="Turn a whiteboard command into operation requests",
    )
    parser.add_argument(
        "message",
        type=str,
        nargs="?",
        default=None,
        help="Natural language command (e.g. 'create 5 red circles')",
    )
    parser.add_argument(
        "--board",
        "-b",
        type=Path,
        default=None,
        help="JSON board snapshot ({objects, selectedIds})",
    )
    parser.add_argument(
        "--no-intent",
        action="store_true",
        help="Skip the intent classifier tier",
    )
    parser.add_argument(
        "--resume",
        "-r",
        type=Path,
        default=None,
        help="Continuation token JSON from a paused run",
    )
    parser.add_argument(
        "--created-ids",
        nargs="*",
        default=None,
        help="Ids the board assigned to the previous batch's objects",
    )
    parser.add_argument(
        "--api-key",
        "-k",
        type=str,
        default=None,
        help="API key (uses env var if not provided)",
    )
    return cmd_run(parser.parse_args(argv))


# =============================================================================
# Route Command
# =============================================================================


def handle_route_command(argv: list[str]) -> int:
    """Show which tier a command would be routed to. Never calls a model."""
    from whiteboard_ai.router import route_command

    parser = argparse.ArgumentParser(
        prog="python . route",
        description="Show the routing decision for a command",
    )
    parser.add_argument("message", type=str, help="Natural language command")
    parser.add_argument(
        "--selection",
        "-s",
        action="store_true",
        help="Route as if objects were selected",
    )
    parser.add_argument(
        "--no-intent",
        action="store_true",
        help="Route as if the intent classifier were disabled",
    )
    args = parser.parse_args(argv)

    use_intent = False if args.no_intent else get_environment(EnvVar.WHITEBOARD_USE_INTENT_CLASSIFIER)
    _print_json(route_command(args.message, args.selection, use_intent).to_dict())
    return 0


# =============================================================================
# Layout Command
# =============================================================================


def handle_layout_command(argv: list[str]) -> int:
    """Lay out a composition plan file without calling a model."""
    from pydantic import ValidationError

    from whiteboard_ai.board import FrameInfo
    from whiteboard_ai.layout import plan_to_tool_calls
    from whiteboard_ai.plan import CompositionPlan, validate_plan

    parser = argparse.ArgumentParser(
        prog="python . layout",
        description="Convert a composition plan into operation requests",
    )
    parser.add_argument("plan", type=Path, help="Composition plan JSON (createPlan arguments)")
    parser.add_argument(
        "--anchor",
        type=float,
        nargs=2,
        metavar=("X", "Y"),
        default=None,
        help="Top-left origin (default: 100 100)",
    )
    parser.add_argument(
        "--frame",
        type=float,
        nargs=4,
        metavar=("X", "Y", "WIDTH", "HEIGHT"),
        default=None,
        help="Compose inside an existing frame",
    )
    parser.add_argument(
        "--explicit",
        action="store_true",
        help="Emit x,y on every request",
    )
    args = parser.parse_args(argv)

    try:
        plan = CompositionPlan.model_validate(json.loads(args.plan.read_text(encoding="utf-8")))
    except ValidationError as e:
        logger.error(f"Invalid plan: {e}")
        return 1
    for issue in validate_plan(plan):
        logger.warning(f"Plan issue at {issue.path}: {issue.message}")

    frame_info = None
    if args.frame:
        x, y, width, height = args.frame
        frame_info = FrameInfo(id="frame", x=x, y=y, width=width, height=height)

    result = plan_to_tool_calls(
        plan,
        anchor=tuple(args.anchor) if args.anchor else None,
        frame_info=frame_info,
        use_explicit_positions=args.explicit,
    )

    logger.info(result.summary)
    _print_json([call.to_dict() for call in result.tool_calls])
    return 0


# =============================================================================
# Models / Env Commands
# =============================================================================


def cmd_list_models(_argv: list[str]) -> int:
    """List known models and the model configured for each pipeline role."""
    from whiteboard_ai.llm import LLMModel, LLMProviderType

    available = get_available_llm_providers()
    logger.info("Available LLM Models:")
    for provider in LLMProviderType:
        models = LLMModel.list_by_provider(provider)
        if models:
            key_tag = "" if provider.value in available else " (no API key)"
            logger.info(f"\n  {provider.value}{key_tag}:")
            for model in models:
                logger.info(f"    {model.spec.name}")

    logger.info("\nPipeline roles:")
    for role, model_name in get_role_models().items():
        logger.info(f"  {role:<12} {model_name}")
    return 0


def cmd_show_env(argv: list[str]) -> int:
    """List environment variables, optionally for one category."""
    category = argv[0] if argv else None
    for env_var in list_environment_variables(category):
        info = get_environment_info(env_var)
        value = get_environment(env_var)
        if env_var.name.endswith("API_KEY") and value:
            value = "***"
        logger.info(f"  {info.name:<36} {value!s:<20} {info.description}")
    return 0


# =============================================================================
# Test Command
# =============================================================================


def cmd_test(extra_args: list[str]) -> int:
    """Run pytest with provided arguments and test tier options.

    Usage:
        python . test                # Run all tests
        python . test --unit         # Run only unit tests
        python . test --integration  # Run tests calling real model APIs
        python . test -k "router"    # Run tests matching pattern
    """
    tier_markers = {
        "--unit": ["-m", "unit"],
        "--integration": ["-m", "integration"],
        "--all": [],
    }

    pytest_args: list[str] = []
    remaining_args: list[str] = []

    for arg in extra_args:
        if arg in tier_markers:
            pytest_args.extend(tier_markers[arg])
        else:
            remaining_args.append(arg)

    cmd = [sys.executable, "-m", "pytest", *pytest_args, *remaining_args]
    logger.info(f"Running: {' '.join(cmd)}")

    try:
        return subprocess.call(cmd)
    except KeyboardInterrupt:
        return 130


# =============================================================================
# Main
# =============================================================================


def show_help() -> None:
    """Display CLI help message."""
    print("Usage: python . {command} [args]")
    print("\n=== Commands ===")
    print("  run        Turn a whiteboard command into operation requests")
    print("  route      Show which tier a command is routed to (no model call)")
    print("  layout     Lay out a composition plan file (no model call)")
    print("  models     List models and per-role model configuration")
    print("  env        List environment variables [llm|models|pipeline]")
    print("  test       Run the test suite")
    print("\nExamples:")
    print("  python . run 'create 5 red circles'")
    print("  python . run 'color all circles blue' --board board.json")
    print("  python . run --resume token.json --created-ids obj-1 obj-2")
    print("  python . route 'delete all rectangles and create 5 stars'")
    print("  python . layout kanban.json --explicit")
    print("  python . test --unit")


def main() -> int:
    """Main entry point for the CLI."""
    if len(sys.argv) < 2:
        show_help()
        return 1

    command = sys.argv[1]
    rest_args = sys.argv[2:]

    if command in ("-h", "--help"):
        show_help()
        return 0

    if command == "test":
        return cmd_test(rest_args)

    commands = {
        "run": lambda: handle_run_command(rest_args),
        "route": lambda: handle_route_command(rest_args),
        "layout": lambda: handle_layout_command(rest_args),
        "models": lambda: cmd_list_models(rest_args),
        "env": lambda: cmd_show_env(rest_args),
    }

    if command in commands:
        setup_logging(get_environment(EnvVar.WHITEBOARD_LOG_LEVEL))
        return commands[command]()

    logger.error(f"Unknown command: {command}")
    show_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
