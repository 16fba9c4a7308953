"""
Main entry point for BranchAI.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from .components.branch_operations import GitBranchOperations
from .components.command_runner import SubprocessCommandRunner
from .components.console_interface import ConsoleInterface
from .components.generation_client import GenerationClient
from .components.repository_context import GitRepositoryContextProvider
from .services.branch_creation import BranchCreationController
from .services.config_manager import SettingsManager
from .utils.logging import LogLevel, get_logger, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="branchai",
        description="Generate git branch names with an OpenAI-compatible API.",
    )
    parser.add_argument("--config", help="Path to the settings file")
    parser.add_argument(
        "--workspace",
        default=None,
        help="Repository working tree (defaults to the current directory)",
    )
    parser.add_argument(
        "--log-level",
        default=LogLevel.WARNING.value,
        type=str.upper,
        choices=[level.value for level in LogLevel],
        help="Log level (default: WARNING)",
    )
    parser.add_argument("--log-dir", default=None, help="Write log files to this directory")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("generate", help="Generate branch names from staged changes")

    describe = subparsers.add_parser(
        "describe", help="Generate branch names from a free-text description"
    )
    describe.add_argument(
        "-m", "--message", default=None, help="Description; prompted for when omitted"
    )

    settings = subparsers.add_parser("settings", help="Show or initialize settings")
    settings.add_argument(
        "--init", action="store_true", help="Write a settings template if none exists"
    )
    settings.add_argument(
        "--check", action="store_true", help="Test the connection to the API endpoint"
    )

    return parser


def resolve_workspace(workspace: Optional[str]) -> Optional[str]:
    """Return the workspace directory, or None if it does not exist."""
    path = Path(workspace) if workspace else Path.cwd()
    if not path.is_dir():
        return None
    return str(path.resolve())


def build_controller(
    settings_manager: SettingsManager,
    workspace_root: Optional[str],
    ui: ConsoleInterface,
) -> BranchCreationController:
    runner = SubprocessCommandRunner()
    return BranchCreationController(
        context_provider=GitRepositoryContextProvider(workspace_root, runner),
        branch_operations=GitBranchOperations(workspace_root, runner),
        generation_client=GenerationClient(),
        ui=ui,
        config_loader=settings_manager.load_generation_config,
    )


def show_settings(settings_manager: SettingsManager, init: bool, check: bool) -> int:
    """Print the resolved settings with the API key masked."""
    if init:
        if settings_manager.write_template():
            print(f"Wrote settings template to {settings_manager.config_path}")
        else:
            print(f"Settings file already exists: {settings_manager.config_path}")

    try:
        settings = settings_manager.load_settings()
    except ValueError as e:
        print(f"BranchAI: {e}")
        return 1

    source = settings_manager.config_path if settings_manager.exists else "(defaults)"
    print(f"Settings file: {source}")
    for key, value in settings.masked().items():
        print(f"  {key}: {value}")

    config = settings.to_generation_config()
    validation = config.validate()
    if not validation.valid:
        print(f"Configuration incomplete: {validation.summary()}")
        return 1

    if check:
        if GenerationClient().test_connection(config):
            print(f"Connection to {config.endpoint} succeeded")
        else:
            print(f"Connection to {config.endpoint} failed")
            return 1

    return 0


async def async_main(args: argparse.Namespace) -> int:
    """Run the selected interactive command."""
    logger = get_logger("main")
    settings_manager = SettingsManager(args.config)

    if args.command == "settings":
        # The connection check uses blocking requests calls
        return await asyncio.to_thread(
            show_settings, settings_manager, args.init, args.check
        )

    workspace_root = resolve_workspace(args.workspace)
    if workspace_root is None:
        logger.warning("Workspace folder not found", {"workspace": args.workspace})

    controller = build_controller(settings_manager, workspace_root, ConsoleInterface())

    if args.command == "describe":
        await controller.generate_from_description(args.message)
    else:
        await controller.generate_from_staged_changes()

    return 0


def main(argv: Optional[List[str]] = None):
    """Main application entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(log_dir=args.log_dir, log_level=args.log_level)

    try:
        exit_code = asyncio.run(async_main(args))
    except KeyboardInterrupt:
        print("\nOperation cancelled")
        exit_code = 130
    except Exception as e:
        get_logger("main").error("Command failed", {"error": str(e)}, exc_info=True)
        print(f"Fatal error: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
