"""CLI entry point for patch-hub."""
import argparse
from dotenv import load_dotenv
import json
import logging
import sys
import traceback
from pathlib import Path

from patch_hub.config import Settings, load_settings
from patch_hub.core.exceptions import PatchHubError, UnknownConfigurationError
from patch_hub.logging_utils import configure_logging
from patch_hub.models import BatchResult, PackageStatus, PatchConfiguration
from patch_hub.orchestrator.exceptions import OrchestratorError

load_dotenv()

# Exit codes
EXIT_SUCCESS = 0
EXIT_INVALID_INPUT = 1
EXIT_CONFIG_ERROR = 2
EXIT_ORCHESTRATOR_ERROR = 3
EXIT_BATCH_FAILED = 4
EXIT_UNEXPECTED = 5
EXIT_KEYBOARD_INTERRUPT = 130


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="patch-hub",
        description="Apply binary diff patches to source artifacts in dependency order",
    )
    parser.add_argument(
        "--workspace",
        type=str,
        default=None,
        help="Workspace JSON file (default: $PATCH_HUB_WORKSPACE or patchhub.json)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--output-json", action="store_true", help="Output results as JSON"
    )
    parser.add_argument("--log-file", type=str, default="", help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser(
        "validate", help="Check configurations for structural and integrity problems"
    )
    validate.add_argument("names", nargs="*", help="Configurations to check (default: all)")

    hash_cmd = subparsers.add_parser(
        "hash", help="Record source digests for configurations"
    )
    hash_cmd.add_argument("names", nargs="+", help="Configurations to hash")

    patch = subparsers.add_parser("patch", help="Apply patches as a batch")
    patch.add_argument("names", nargs="*", help="Configurations to patch (default: all)")
    patch.add_argument(
        "--yes", action="store_true", help="Overwrite existing output without asking"
    )
    patch.add_argument(
        "--block-on-integrity",
        action="store_true",
        help="Refuse to patch configurations whose source digests do not match",
    )
    patch.add_argument(
        "--tool-root",
        type=str,
        default="",
        help="Directory holding the platform builds of the patch utility",
    )

    packages = subparsers.add_parser(
        "packages", help="Check required packages against the package service"
    )
    packages.add_argument("names", nargs="*", help="Configurations to check (default: all)")
    packages.add_argument(
        "--install",
        action="store_true",
        help="Install missing or outdated packages that the service can provide",
    )
    return parser


def format_result_json(result: dict) -> str:
    """Serialize result dict to JSON string.

    Calls .model_dump() on Pydantic model values. Falls back to str()
    for non-serializable types (datetime, Path, etc.) via default=str.
    """

    def _serialize(obj):
        if obj is None:
            return None
        if hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json")
        if isinstance(obj, list):
            return [_serialize(item) for item in obj]
        if isinstance(obj, dict):
            return {k: _serialize(v) for k, v in obj.items()}
        return obj

    prepared = {k: _serialize(v) for k, v in result.items()}
    return json.dumps(prepared, indent=2, default=str)


def _print_header(title: str) -> None:
    print(f"\n{'='*60}")
    print(title)
    print(f"{'='*60}")


def print_result_human(result: dict) -> None:
    """Print a command result in human-readable format."""
    command = result.get("command", "")
    _print_header(f"patch-hub {command}")

    for item in result.get("configurations", []):
        status = "ok" if item.get("ok") else "problem"
        print(f"\n{item['display_name']}: {status}")
        for message in item.get("messages", []):
            print(f"  - {message}")

    batch = result.get("batch")
    if isinstance(batch, BatchResult):
        print()
        for line in batch.summary_lines():
            print(line)
        if batch.output_artifacts:
            print(f"\nOutput artifacts ({len(batch.output_artifacts)}):")
            for artifact in batch.output_artifacts:
                print(f"  {artifact}")
        if batch.warnings:
            print(f"\nWarnings ({len(batch.warnings)}):")
            for warning in batch.warnings:
                print(f"  - {warning}")

    issues = result.get("issues")
    if issues is not None:
        if not issues:
            print("\nAll package requirements are met.")
        statuses = result.get("availability", {})
        for issue in issues:
            status = statuses.get(issue.package_name, PackageStatus.UNKNOWN.value)
            print(f"\n{issue.package_name} [{issue.kind}, {status}]")
            print(f"  {issue.message}")
            if issue.info_url:
                print(f"  More info: {issue.info_url}")

    for package_id, install in result.get("installs", {}).items():
        state = "installed" if install.success else f"failed: {install.error}"
        print(f"  install {package_id}: {state}")

    errors = result.get("errors", [])
    if errors:
        print(f"\nErrors ({len(errors)}):")
        for err in errors:
            print(f"  - {err}")

    print(f"\n{'='*60}")


def _handle_error(label: str, exc: BaseException, verbose: bool, exit_code: int) -> int:
    """Print error message to stderr and return the exit code."""
    print(f"{label}: {exc}", file=sys.stderr)
    if verbose:
        traceback.print_exc(file=sys.stderr)
    return exit_code


def prompt_overwrite(config: PatchConfiguration, output_path: str) -> bool:
    """Ask on the terminal whether existing output may be replaced."""
    if not sys.stdin.isatty():
        return False
    answer = input(
        f"Output for '{config.display_name}' already exists at {output_path}. Overwrite? [y/N] "
    )
    return answer.strip().lower() in ("y", "yes")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def run_validate(args: argparse.Namespace, workspace, settings: Settings) -> tuple[dict, int]:
    from patch_hub.core.dependency_graph import DependencyGraph
    from patch_hub.core.hash_verifier import verify_configuration
    from patch_hub.core.validation import validation_message

    graph = DependencyGraph.from_workspace(workspace)
    items = []
    for config in workspace.select(args.names or None):
        messages = []
        structural = validation_message(config, graph, workspace.store)
        if structural:
            messages.append(structural)
        integrity = verify_configuration(config, workspace.store)
        messages.extend(integrity.messages())
        ok = structural is None and not integrity.has_problems
        items.append({
            "display_name": config.display_name,
            "ok": ok,
            "messages": messages,
            "integrity": integrity,
        })

    exit_code = EXIT_SUCCESS if all(item["ok"] for item in items) else EXIT_CONFIG_ERROR
    return {"command": "validate", "configurations": items}, exit_code


def run_hash(args: argparse.Namespace, workspace, settings: Settings) -> tuple[dict, int]:
    from patch_hub.core.hash_verifier import generate_digests

    items = []
    for config in workspace.select(args.names):
        primary, companion = generate_digests(config, workspace.store)
        items.append({
            "display_name": config.display_name,
            "ok": True,
            "messages": [f"primary {primary}", f"companion {companion}"],
        })
    workspace.save()
    return {"command": "hash", "configurations": items}, EXIT_SUCCESS


def run_patch(args: argparse.Namespace, workspace, settings: Settings) -> tuple[dict, int]:
    from patch_hub.core.patch_executor import PatchExecutor
    from patch_hub.orchestrator.graph import run_batch

    executor = PatchExecutor(
        tool_root=Path(args.tool_root or settings.tool_root).expanduser(),
        timeout_seconds=settings.process_timeout,
    )
    confirm = (lambda config, output_path: True) if args.yes else prompt_overwrite
    result = run_batch(
        workspace,
        args.names or None,
        executor,
        confirm_overwrite=confirm,
        block_on_integrity_failure=args.block_on_integrity or settings.block_on_integrity,
    )
    exit_code = EXIT_BATCH_FAILED if result.failed else EXIT_SUCCESS
    return {"command": "patch", "batch": result, "errors": result.errors}, exit_code


def run_packages(args: argparse.Namespace, workspace, settings: Settings) -> tuple[dict, int]:
    from patch_hub.packages.client import PackageServiceClient
    from patch_hub.packages.installer import install_packages
    from patch_hub.packages.poller import AvailabilityPoller
    from patch_hub.packages.requirements import check_requirements, collect_requirements

    project_path = workspace.path.parent if workspace.path is not None else Path.cwd()
    client = PackageServiceClient(
        base_url=settings.service_url,
        project_path=project_path,
        timeout=settings.service_timeout,
    )

    requirements = collect_requirements(
        workspace.package_rules, workspace.select(args.names or None)
    )
    errors: list[str] = []
    dependencies = client.list_dependencies()
    if dependencies is None:
        errors.append("Package service unavailable; installed packages are unknown")
        dependencies = []
    installed = {dep.package_id: dep.version for dep in dependencies}
    issues = check_requirements(requirements, installed)

    availability: dict[str, str] = {}
    installs = {}
    if issues:
        poller = AvailabilityPoller(
            client,
            probe_timeout=settings.probe_timeout,
            item_timeout=settings.item_timeout,
            install_timeout=settings.install_timeout,
        )
        try:
            future = poller.check_batch([issue.package_name for issue in issues])
            if future is not None:
                future.result()
            poller.drain()
            availability = {
                name: record.status.value for name, record in poller.status_cache.items()
            }
        finally:
            poller.shutdown()

        if args.install:
            # Outdated packages are in the manifest, so they report as installed
            installable = [
                issue.package_name
                for issue in issues
                if issue.package_name in poller.status_cache
                and poller.status_cache[issue.package_name].is_available
            ]
            installs = install_packages(client, installable, delay_ms=settings.install_delay_ms)

    unresolved = [
        issue for issue in issues
        if not (issue.package_name in installs and installs[issue.package_name].success)
    ]
    exit_code = EXIT_BATCH_FAILED if unresolved else EXIT_SUCCESS
    result = {
        "command": "packages",
        "issues": issues,
        "availability": availability,
        "installs": installs,
        "errors": errors,
    }
    return result, exit_code


_COMMANDS = {
    "validate": run_validate,
    "hash": run_hash,
    "patch": run_patch,
    "packages": run_packages,
}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code integer.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings(dotenv=False)
    configure_logging(
        logging.DEBUG if args.verbose else settings.log_level,
        log_file=Path(args.log_file) if args.log_file else None,
    )

    try:
        from patch_hub.core.workspace import load_workspace

        workspace = load_workspace(args.workspace or settings.workspace)
        result, exit_code = _COMMANDS[args.command](args, workspace, settings)

        if args.output_json:
            print(format_result_json(result))
        else:
            print_result_human(result)
        return exit_code

    except UnknownConfigurationError as exc:
        return _handle_error("Invalid input", exc, args.verbose, EXIT_INVALID_INPUT)

    except PatchHubError as exc:
        return _handle_error("Configuration error", exc, args.verbose, EXIT_CONFIG_ERROR)

    except OrchestratorError as exc:
        return _handle_error("Orchestrator error", exc, args.verbose, EXIT_ORCHESTRATOR_ERROR)

    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_KEYBOARD_INTERRUPT

    except Exception as exc:
        return _handle_error("Unexpected error", exc, args.verbose, EXIT_UNEXPECTED)


if __name__ == "__main__":
    sys.exit(main())
