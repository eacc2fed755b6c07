from __future__ import annotations

import json
import logging
import os
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import Config, GLOBAL_CONFIG_PATH, Settings
from .context import DEFAULT_ENVIRONMENT, EnvironmentContext, resolve_context, validate_environment
from .devenv import setup_rollback_guidance, setup_steps
from .errors import InfraOpsError
from .hook import ConsoleHook
from .operations import Operations
from .runner import Provisioner, ProvisioningReport
from .step import OutcomeStatus
from .steps import default_steps


app = typer.Typer(name="infraops", help="Infra-Ops CLI: bootstrap a Kubernetes platform with ArgoCD and Crossplane.", no_args_is_help=True)
console = Console()

_OUTCOME_STYLE = {
    OutcomeStatus.PERFORMED: "green",
    OutcomeStatus.ALREADY_SATISFIED: "green",
    OutcomeStatus.DISABLED: "yellow",
    OutcomeStatus.DEGRADED: "yellow",
    OutcomeStatus.SKIPPED: "blue",
    OutcomeStatus.FAILED: "red",
}


def _configure_logging(verbose: bool) -> None:
    log_level = os.getenv("INFRAOPS_LOG_LEVEL", "INFO" if verbose else "WARNING")
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(name)s: %(message)s",
    )


def _load_settings() -> Settings:
    return Settings.from_config(Config.load_with_repo_context())


def _print_summary(report: ProvisioningReport) -> None:
    table = Table(title="Provisioning Summary")
    table.add_column("Step")
    table.add_column("Outcome")
    table.add_column("Details")
    for name, outcome in report.entries:
        style = _OUTCOME_STYLE[outcome.status]
        detail = outcome.message
        if outcome.actions:
            detail = f"{detail} [{', '.join(outcome.actions)}]" if detail else ", ".join(outcome.actions)
        table.add_row(Text(name), Text(outcome.status.value, style=style), Text(detail))
    console.print()
    console.print(table)


def _next_steps(ctx: EnvironmentContext) -> str:
    ns = ctx.settings.argocd_namespace
    lines = []
    if ctx.platform.hosted_dev_env:
        host = ctx.platform.codespace_name or "<your-codespace>"
        lines += [
            "Your Infra-Ops platform is ready in GitHub Codespaces!",
            "",
            "🌐 Access ArgoCD UI:",
            f"   kubectl port-forward svc/argocd-server -n {ns} 9090:80",
            "   Then open the port 9090 URL in the Ports tab",
            f"   The URL will be: https://{host}-9090.app.github.dev/",
        ]
    else:
        lines += [
            "Your Infra-Ops platform is ready!",
            "",
            "🌐 Access ArgoCD UI:",
            f"   kubectl port-forward svc/argocd-server -n {ns} 9090:80",
            f"   URL: {ctx.settings.argocd_url}",
        ]
    lines += [
        "",
        "🔑 Get ArgoCD admin password:",
        f"   kubectl -n {ns} get secret argocd-initial-admin-secret -o jsonpath='{{.data.password}}' | base64 -d",
        "",
        "📊 Check status:",
        f"   kubectl get pods -n {ns}",
        f"   kubectl get pods -n {ctx.settings.crossplane_namespace}",
        "   kubectl get providers",
    ]
    if ctx.platform.hosted_dev_env:
        lines += [
            "",
            "💡 ArgoCD runs in insecure mode to work with the Codespaces proxy",
        ]
    return "\n".join(lines)


def _finish(report: ProvisioningReport, as_json: bool, success_text: Optional[str], title: str) -> int:
    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2))
        return report.exit_code
    _print_summary(report)
    if report.ok and success_text and not report.ctx.dry_run:
        console.print(Panel(Text(success_text), title=title, expand=False))
    return report.exit_code


def _reject_show_with_json() -> int:
    # with --json, stdout carries only the report
    typer.echo("Error: --show cannot be combined with --json", err=True)
    return 2


def cmd_bootstrap(
    environment: Optional[str] = None,
    cluster: Optional[str] = None,
    dry_run: Optional[bool] = None,
    skip_cluster_create: Optional[bool] = None,
    show: bool = False,
    as_json: bool = False,
    ops: Optional[Operations] = None,
) -> int:
    if show and as_json:
        return _reject_show_with_json()
    try:
        validate_environment(environment or DEFAULT_ENVIRONMENT)
        ctx = resolve_context(
            environment,
            cluster,
            dry_run=dry_run,
            skip_cluster_create=skip_cluster_create,
            settings=_load_settings(),
        )
    except InfraOpsError as e:
        typer.echo(f"Error: {e}", err=True)
        return 1

    hooks = [] if as_json else [ConsoleHook(console)]
    provisioner = Provisioner(default_steps(), ops=ops or Operations(show=show), hooks=hooks)
    report = provisioner.run(ctx)
    return _finish(report, as_json, _next_steps(ctx), "Bootstrap Complete! 🎉")


def cmd_setup(dry_run: Optional[bool] = None, show: bool = False, as_json: bool = False, ops: Optional[Operations] = None) -> int:
    if show and as_json:
        return _reject_show_with_json()
    try:
        ctx = resolve_context(dry_run=dry_run, skip_cluster_create=False, settings=_load_settings())
    except InfraOpsError as e:
        typer.echo(f"Error: {e}", err=True)
        return 1

    hooks = [] if as_json else [ConsoleHook(console, title="Infra-Ops Development Environment Setup", failure_title="Setup failed!")]
    provisioner = Provisioner(setup_steps(), ops=ops or Operations(show=show), hooks=hooks, rollback=setup_rollback_guidance)
    report = provisioner.run(ctx)
    quick_start = (
        "Development environment setup complete!\n\n"
        "   1. Run: infraops bootstrap to set up the cluster\n"
        "   2. Access ArgoCD on port 9090 (argocd-ui starts the port-forward)\n"
        f"   3. Open a new shell or source {ctx.settings.profile_path} to load the aliases"
    )
    return _finish(report, as_json, quick_start, "Setup Complete")


def cmd_steps() -> int:
    for i, step in enumerate(default_steps(), start=1):
        typer.echo(f"{i}. {step.name} ({type(step).__name__})")
    return 0


def cmd_config_set(key: str, value: str) -> int:
    """Set a configuration value in the global config file."""
    try:
        config = Config(config_path=GLOBAL_CONFIG_PATH, enable_hierarchy=False)
        config.set(key, yaml.safe_load(value))
        Settings.from_config(config)
        config.save()
        typer.echo(f"✓ Set {key} = {value}")
        return 0
    except (InfraOpsError, yaml.YAMLError) as e:
        typer.echo(f"Error: {e}", err=True)
        return 2


def cmd_config_get(key: Optional[str]) -> int:
    """Print one configuration value, or all effective settings."""
    try:
        config = Config.load_with_repo_context()
        if key:
            value = config.get(key)
            typer.echo(f"{key} = {value if value is not None else '(not set)'}")
            return 0
        settings = Settings.from_config(config)
        typer.echo("Configuration:")
        for name in Settings.__dataclass_fields__:
            typer.echo(f"  {name}: {getattr(settings, name)}")
        return 0
    except InfraOpsError as e:
        typer.echo(f"Error: {e}", err=True)
        return 2


# Typer command bindings


@app.command("bootstrap", help="Provision a cluster with ArgoCD and Crossplane")
def bootstrap_command(
    environment: Optional[str] = typer.Argument(None, help="Environment: local, staging or production (default: local)"),
    cluster: Optional[str] = typer.Argument(None, help="Cluster name (default: infra-ops-<environment>)"),
    dry_run: Optional[bool] = typer.Option(None, "--dry-run/--no-dry-run", help="Report intent only (default from DRY_RUN)"),
    skip_cluster_create: Optional[bool] = typer.Option(
        None, "--skip-cluster-create/--no-skip-cluster-create", help="Bypass cluster creation (default from SKIP_CLUSTER_CREATE)"
    ),
    show: bool = typer.Option(False, "--show", help="Stream command output while running"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON instead of tables"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed log output"),
):
    _configure_logging(verbose)
    code = cmd_bootstrap(environment, cluster, dry_run, skip_cluster_create, show=show, as_json=as_json)
    raise typer.Exit(code)


@app.command("setup", help="Install CLI tools and shell helpers for local development")
def setup_command(
    dry_run: Optional[bool] = typer.Option(None, "--dry-run/--no-dry-run", help="Report intent only (default from DRY_RUN)"),
    show: bool = typer.Option(False, "--show", help="Stream command output while running"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON instead of tables"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed log output"),
):
    _configure_logging(verbose)
    code = cmd_setup(dry_run, show=show, as_json=as_json)
    raise typer.Exit(code)


@app.command("steps", help="List the bootstrap steps in execution order")
def steps_command():
    raise typer.Exit(cmd_steps())


@app.command("config", help="Get or set configuration values")
def config_command(
    key: Optional[str] = typer.Argument(None, help="Configuration key"),
    value: Optional[str] = typer.Argument(None, help="Value to set (omit to get current value)"),
):
    if key and value is not None:
        code = cmd_config_set(key, value)
    else:
        code = cmd_config_get(key)
    raise typer.Exit(code)


def main(argv: list[str] | None = None) -> int:
    # Programmatic entry point that returns an int code.
    try:
        # with standalone_mode=False click returns the exit code instead of raising
        rv = app(args=argv, prog_name="infraops", standalone_mode=False)
        return int(rv or 0)
    except typer.Exit as e:
        return int(e.exit_code or 0)
    except SystemExit as e:
        return int(e.code or 0)
    except Exception as e:  # noqa: BLE001
        if str(e):
            typer.echo(f"Unexpected error: {e}", err=True)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
