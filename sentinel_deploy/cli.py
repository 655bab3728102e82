"""
Sentinel content deployment — install content hub solutions, then enable their rules.

Usage:
    sentinel-deploy -g rg-sec -w law-sec -r westeurope -s "Syslog" "Azure Activity"
    sentinel-deploy -g rg-sec -w law-sec -r westeurope -s Syslog --severities High Medium
    sentinel-deploy --profile deploy.yml                 # Inputs from a YAML profile
    sentinel-deploy --profile deploy.yml --gov           # Azure US Government cloud
    sentinel-deploy --profile deploy.yml --skip-rules    # Solutions only
    sentinel-deploy --profile deploy.yml --list-solutions
    sentinel-deploy --profile deploy.yml --report json

Exit codes: 0 ok, 1 a solution failed to install, 2 fatal setup error,
3 none of the requested solutions exist in the catalog.
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, field

from sentinel_deploy.config import settings
from sentinel_deploy.exceptions import CatalogError, ConfigurationError, DeploymentError
from sentinel_deploy.models.results import ActivationReport, InstallReport
from sentinel_deploy.models.rules import Severity
from sentinel_deploy.services.arm_client import ManagementClient
from sentinel_deploy.services.auth import acquire_token
from sentinel_deploy.services.error_log import ErrorLog
from sentinel_deploy.services.profile import DeploymentProfile, load_profile, split_names
from sentinel_deploy.services.report import format_run_report
from sentinel_deploy.services.rule_activator import activate_rules
from sentinel_deploy.services.solution_installer import fetch_catalog, install_solutions

log = logging.getLogger("sentinel-deploy")

EXIT_OK = 0
EXIT_INSTALL_FAILED = 1
EXIT_FATAL = 2
EXIT_NO_MATCHES = 3

ALL_SEVERITIES = "All"


@dataclass
class RunInputs:
    """Fully resolved inputs for one deployment run."""
    subscription_id: str
    resource_group: str
    workspace: str
    region: str
    solutions: list[str]
    severities: list[str] = field(default_factory=list)
    gov: bool = False


@dataclass
class RunResult:
    """What each phase produced; ``aborted`` holds why the rule phase stopped early."""
    install: InstallReport
    activation: ActivationReport | None = None
    aborted: str | None = None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sentinel-deploy",
        description="Install Sentinel content hub solutions and enable their analytics rules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Target
    parser.add_argument("--resource-group", "-g", default=None, help="Target resource group")
    parser.add_argument("--workspace", "-w", default=None, help="Target Log Analytics workspace")
    parser.add_argument("--region", "-r", default=None, help="Workspace region (e.g., westeurope)")
    parser.add_argument(
        "--subscription-id", default=None,
        help="Subscription id (default: SENTINEL_SUBSCRIPTION_ID)",
    )
    parser.add_argument(
        "--gov", action="store_const", const=True, default=None,
        help="Use the Azure US Government management endpoint",
    )
    parser.add_argument("--profile", "-p", default=None, help="YAML file with deployment inputs")

    # Content selection
    parser.add_argument(
        "--solutions", "-s", nargs="+", default=None,
        help="Solution display names (space or comma separated)",
    )
    parser.add_argument(
        "--severities", nargs="+", default=None,
        help="Rule severities to enable (default: High Medium Low; 'All' for every severity)",
    )

    # Run control
    parser.add_argument(
        "--phase-delay", type=int, default=None,
        help=f"Seconds to wait between installing solutions and enabling rules "
             f"(default: {settings.phase_delay_seconds})",
    )
    parser.add_argument("--skip-rules", action="store_true", help="Only install solutions")
    parser.add_argument(
        "--list-solutions", action="store_true",
        help="List the solutions available in the content hub and exit",
    )
    parser.add_argument(
        "--error-log", default=None,
        help=f"File receiving full error bodies (default: {settings.error_log_path})",
    )
    parser.add_argument(
        "--report", choices=["text", "json"], default="text",
        help="Summary format (default: text)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def normalize_severities(values: list[str] | None) -> list[str]:
    """Validate severity names; an empty result means every severity."""
    if values is None:
        return list(settings.default_severities)
    names = split_names(values)
    if any(name.lower() == ALL_SEVERITIES.lower() for name in names):
        return []
    known = {s.value.lower(): s.value for s in Severity}
    resolved = []
    for name in names:
        if name.lower() not in known:
            raise ConfigurationError(
                f"Unknown severity '{name}' (expected one of: {', '.join(known.values())})"
            )
        resolved.append(known[name.lower()])
    return resolved


def resolve_inputs(args: argparse.Namespace, require_solutions: bool = True) -> RunInputs:
    """Merge CLI flags over an optional profile over settings."""
    profile = load_profile(args.profile) if args.profile else DeploymentProfile()

    def pick(flag, from_profile):
        return flag if flag is not None else from_profile

    inputs = RunInputs(
        subscription_id=pick(args.subscription_id, profile.subscription_id) or settings.subscription_id,
        resource_group=pick(args.resource_group, profile.resource_group) or "",
        workspace=pick(args.workspace, profile.workspace) or "",
        region=pick(args.region, profile.region) or "",
        solutions=split_names(args.solutions) if args.solutions is not None else (profile.solutions or []),
        severities=normalize_severities(pick(args.severities, profile.severities)),
        gov=bool(pick(args.gov, pick(profile.gov, settings.gov_cloud))),
    )

    missing = [
        name for name, value in [
            ("subscription id", inputs.subscription_id),
            ("resource group", inputs.resource_group),
            ("workspace", inputs.workspace),
            ("region", inputs.region),
        ] if not value
    ]
    if require_solutions and not inputs.solutions:
        missing.append("solutions")
    if missing:
        raise ConfigurationError(f"Missing required inputs: {', '.join(missing)}")
    return inputs


def exit_code(install: InstallReport | None) -> int:
    """Installer outcome decides the exit status; rule outcomes never do."""
    if install is None:
        return EXIT_OK
    if not install.ok:
        return EXIT_INSTALL_FAILED
    if install.no_matches:
        return EXIT_NO_MATCHES
    return EXIT_OK


async def run_deployment(
    client: ManagementClient,
    inputs: RunInputs,
    phase_delay: float,
    skip_rules: bool = False,
    error_log: ErrorLog | None = None,
) -> RunResult:
    """Installer, then a blind wait for the catalog to catch up, then the Activator."""
    log.info("=== Installing solutions into %s/%s (%s)",
             inputs.resource_group, inputs.workspace, inputs.region)
    install = await install_solutions(
        client, inputs.solutions, inputs.workspace, inputs.region, error_log=error_log,
    )

    if skip_rules:
        return RunResult(install)

    if phase_delay > 0:
        log.info("Waiting %ss for installed content to reach the template catalog", phase_delay)
        await asyncio.sleep(phase_delay)

    log.info("=== Enabling analytics rules")
    try:
        activation = await activate_rules(client, inputs.severities)
    except CatalogError as e:
        log.error("Rule phase aborted: %s", e.message)
        return RunResult(install, aborted=e.message)
    return RunResult(install, activation)


async def list_solutions(client: ManagementClient) -> int:
    catalog = await fetch_catalog(client)
    print(f"\n{'Solution':<60} {'Version':<12}")
    print(f"{'-'*60} {'-'*12}")
    for entry in sorted(catalog, key=lambda e: e.display_name.lower()):
        print(f"{entry.display_name[:60]:<60} {entry.version or '':<12}")
    print(f"\n{len(catalog)} solutions available")
    return EXIT_OK


async def _main(args: argparse.Namespace, inputs: RunInputs, token: str) -> int:
    client = ManagementClient(
        token, inputs.subscription_id, inputs.resource_group, inputs.workspace, gov=inputs.gov,
    )
    async with client:
        if args.list_solutions:
            return await list_solutions(client)

        phase_delay = args.phase_delay if args.phase_delay is not None else settings.phase_delay_seconds
        run = await run_deployment(
            client,
            inputs,
            phase_delay=phase_delay,
            skip_rules=args.skip_rules,
            error_log=ErrorLog(args.error_log or settings.error_log_path),
        )

    print(format_run_report(run.install, run.activation, args.report, rules_error=run.aborted))
    if run.aborted:
        return EXIT_FATAL
    return exit_code(run.install)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        inputs = resolve_inputs(args, require_solutions=not args.list_solutions)
        # Synchronous credential chain; resolved before the event loop starts.
        token = acquire_token(inputs.gov)
        return asyncio.run(_main(args, inputs, token))
    except DeploymentError as e:
        log.error("%s", e.message)
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
