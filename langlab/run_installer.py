# langlab/run_installer.py
"""Command line entry point: install or remove LangSmith / LangGraph Platform."""

import argparse
import logging
import sys

from langlab.config.settings import load_operator_config
from langlab.container import Container, build_container
from langlab.core.errors import InstallerError
from langlab.core.models import (
    ALL_COMPONENTS,
    Action,
    Component,
    InstallationRequest,
    RunContext,
)
from langlab.prerequisites import check_prerequisites

logger = logging.getLogger(__name__)


EPILOG = """\
examples:
  langlab up --core                  Install LangSmith only
  langlab up --core --version 1.2.3  Install LangSmith with a specific chart version
  langlab up --core --debug          Install LangSmith with Helm debug output
  langlab up --platform              Install LangGraph Platform (installs LangSmith first if missing)
  langlab down                       Remove both LangSmith and LangGraph Platform

notes:
  - configuration is read from <config dir>/.env (LANGLAB_CONFIG_DIR, default ./config)
  - the namespace is derived from the local host name
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="langlab",
        description="Install and remove LangSmith and LangGraph Platform on a Kubernetes cluster.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "action",
        choices=[a.value for a in Action],
        help="up: install the selected components; down: remove both components",
    )
    parser.add_argument(
        "--core", "-ls",
        dest="core",
        action="store_true",
        help="Install LangSmith",
    )
    parser.add_argument(
        "--platform", "-lgp",
        dest="platform",
        action="store_true",
        help="Install LangGraph Platform",
    )
    parser.add_argument(
        "--version", "-v",
        dest="version",
        default=None,
        help="Chart version to install",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable Helm debug output",
    )
    return parser


def parse_request(argv: list[str] | None = None) -> InstallationRequest:
    parser = build_parser()
    args = parser.parse_args(argv)
    action = Action(args.action)

    if action == Action.DOWN:
        return InstallationRequest(
            action=action,
            components=ALL_COMPONENTS,
            version=args.version,
            debug=args.debug,
        )

    components = set()
    if args.core:
        components.add(Component.CORE_SERVICE)
    if args.platform:
        components.add(Component.PLATFORM_RUNTIME)

    if not components:
        parser.error("at least one of --core or --platform must be specified with 'up'")

    return InstallationRequest(
        action=action,
        components=frozenset(components),
        version=args.version,
        debug=args.debug,
    )


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def execute(request: InstallationRequest, container: Container) -> RunContext:
    settings = container.settings

    check_prerequisites()

    logger.info(f"Loading configuration from {settings.env_file}...")
    operator = load_operator_config(settings.env_file)
    logger.info("✅ Configuration loaded successfully")

    if request.action == Action.UP:
        namespace = container.resolver.resolve()

        logger.info("Setting up Helm repository...")
        container.cluster.ensure_chart_repository(
            settings.chart_repo_name, settings.chart_repo_url
        )
        logger.info("✅ Helm repository updated")
    else:
        # Teardown must not create the namespace it is about to remove
        namespace = container.resolver.derive_namespace()

    ctx = RunContext(
        request=request,
        environment=container.resolver.environment(namespace, operator),
    )
    return container.orchestrator.run(ctx)


def main(argv: list[str] | None = None, container: Container | None = None) -> int:
    """Main entry point."""
    request = parse_request(argv)
    configure_logging(request.debug)

    logger.info("Starting LangSmith/LangGraph Platform installer")
    logger.info(f"Action: {request.action.value}")
    if request.action == Action.DOWN:
        logger.info("Down action will remove both LangSmith and LangGraph Platform")
    logger.info(f"Install LangSmith: {request.wants(Component.CORE_SERVICE)}")
    logger.info(f"Install LangGraph Platform: {request.wants(Component.PLATFORM_RUNTIME)}")
    if request.version:
        logger.info(f"Version: {request.version}")

    try:
        ctx = execute(request, container or build_container())
    except InstallerError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    for warning in ctx.warnings:
        logger.warning(f"{type(warning).__name__}: {warning}")

    logger.info("✅ Script completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
