"""Command-line interface for siteinit."""

import json
from pathlib import Path

import structlog
import typer
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import SiteInitConfig, load_config
from .core.pipeline import SiteInputs, build_networks, build_sls_state
from .observability import configure_logging
from .sls.state import networks_to_dict
from .validation import validate_input_files
from .xname import (
    HMSType,
    get_hms_comp_parent,
    get_hms_type,
    is_hms_type_controller,
    legacy_type,
    normalize_hms_comp_id,
)

app = typer.Typer(
    name="siteinit",
    help="siteinit - Generate CSM networks and SLS state from site inputs",
    add_completion=False,
)

console = Console()
logger = structlog.get_logger(__name__)


def _load_settings(
    config_file: Path | None, log_level: str | None, log_filter: str | None = None
) -> SiteInitConfig:
    config = load_config(config_file)
    configure_logging(
        level=log_level or config.logging.level,
        json_logs=config.logging.format == "json",
        log_file=config.logging.file,
        log_filter=log_filter,
    )
    return config


@app.command()
def xname(
    value: str = typer.Argument(..., help="Xname to inspect"),
) -> None:
    """
    Normalize and classify an xname.

    Examples:
        siteinit xname x3000c0s19b0n0
        siteinit xname X03000C0W14
    """
    normalized = normalize_hms_comp_id(value)
    hms_type = get_hms_type(normalized)
    valid = hms_type != HMSType.INVALID

    table = Table(title="Xname")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Input", value)
    table.add_row("Normalized", normalized)
    table.add_row("Type", str(hms_type))
    table.add_row("Valid", "yes" if valid else "[red]no[/red]")
    if valid:
        parent = "-" if hms_type == HMSType.SYSTEM else get_hms_comp_parent(normalized)
        table.add_row("Parent", parent)
        table.add_row("Controller", "yes" if is_hms_type_controller(hms_type) else "no")
        table.add_row("Legacy Type", legacy_type(hms_type))

    console.print(table)
    if not valid:
        raise typer.Exit(code=1)


@app.command()
def validate(
    cabinets: Path | None = typer.Option(None, "--cabinets", help="cabinets.yaml"),
    switches: Path | None = typer.Option(None, "--switches", help="switch_metadata.csv"),
    app_config: Path | None = typer.Option(
        None, "--app-config", help="application_node_config.yaml"
    ),
    hmn: Path | None = typer.Option(None, "--hmn", help="hmn_connections.json"),
    strict: bool = typer.Option(False, "--strict", help="Fail on warnings"),
) -> None:
    """
    Validate the site input files without generating anything.

    Every problem across every file is reported together.

    Examples:
        siteinit validate --cabinets cabinets.yaml --switches switch_metadata.csv
        siteinit validate --hmn hmn_connections.json --app-config application_node_config.yaml
    """
    if not any((cabinets, switches, app_config, hmn)):
        console.print("[yellow]WARNING: No input files given, nothing to validate[/yellow]")
        raise typer.Exit(code=1)

    console.print("\n[bold blue]Validating site inputs[/bold blue]\n")
    report = validate_input_files(cabinets, switches, app_config, hmn)

    for issue in report.errors:
        console.print(f"[red]{issue}[/red]")
    for warning in report.warnings:
        console.print(f"[yellow]{warning}[/yellow]")

    table = Table(title="Validation Summary")
    table.add_column("Check", style="cyan")
    table.add_column("Count", justify="right", style="green")
    for key, count in report.summary.items():
        table.add_row(key.capitalize(), str(count))
    console.print("\n", table)

    if not report.is_valid:
        console.print(f"\n[red]ERROR: Validation failed with {len(report.errors)} errors[/red]")
        raise typer.Exit(code=1)
    if strict and report.warnings:
        console.print("\n[red]ERROR: Validation failed (strict mode, warnings present)[/red]")
        raise typer.Exit(code=1)
    console.print("\n[green]PASS: Validation successful![/green]")


@app.command("gen-networks")
def gen_networks(
    cabinets: Path = typer.Option(..., "--cabinets", help="cabinets.yaml", exists=True),
    switches: Path = typer.Option(..., "--switches", help="switch_metadata.csv", exists=True),
    output_file: Path = typer.Option(
        Path("networks.yaml"), "--output", "-o", help="Output file (.yaml or .json)"
    ),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log verbosity: TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR"
    ),
) -> None:
    """
    Build the CSM networks for a site.

    Examples:
        siteinit gen-networks --cabinets cabinets.yaml --switches switch_metadata.csv
        siteinit gen-networks --cabinets cabinets.yaml --switches sw.csv -o networks.json
    """
    try:
        config = _load_settings(config_file, log_level)
        inputs = SiteInputs.from_files(cabinets, switches)
        networks = build_networks(inputs, config)

        document = networks_to_dict(networks)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, "w", encoding="utf-8") as f:
            if output_file.suffix.lower() == ".json":
                json.dump(document, f, indent=2)
                f.write("\n")
            else:
                yaml.safe_dump(document, f, default_flow_style=False, sort_keys=False)

        table = Table(title="Networks")
        table.add_column("Name", style="cyan")
        table.add_column("CIDR")
        table.add_column("Subnets", justify="right", style="green")
        for name in sorted(networks):
            network = networks[name]
            table.add_row(name, str(network.cidr), str(len(network.subnets)))
        console.print(table)
        console.print(f"\n[green]Wrote {len(networks)} networks to {output_file}[/green]")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"\n[red]ERROR: Network generation failed:[/red] {e}")
        raise typer.Exit(code=1) from e


@app.command("gen-sls")
def gen_sls(
    cabinets: Path = typer.Option(..., "--cabinets", help="cabinets.yaml", exists=True),
    switches: Path = typer.Option(..., "--switches", help="switch_metadata.csv", exists=True),
    hmn: Path = typer.Option(..., "--hmn", help="hmn_connections.json", exists=True),
    app_config: Path | None = typer.Option(
        None, "--app-config", help="application_node_config.yaml"
    ),
    output_file: Path = typer.Option(
        Path("sls_input_file.json"), "--output", "-o", help="Output SLS JSON file"
    ),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log verbosity: TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR"
    ),
    log_filter: str | None = typer.Option(
        None,
        "--log-filter",
        help="Filter logs by component (comma-separated, e.g., 'generator,builder')",
    ),
) -> None:
    """
    Generate the SLS state for a site.

    Examples:
        siteinit gen-sls --cabinets cabinets.yaml --switches switch_metadata.csv \\
            --hmn hmn_connections.json --app-config application_node_config.yaml
    """
    try:
        config = _load_settings(config_file, log_level, log_filter)
        inputs = SiteInputs.from_files(cabinets, switches, app_config, hmn)
        state = build_sls_state(inputs, config)
        state.write_json(output_file)

        table = Table(title="Hardware by Type")
        table.add_column("Type", style="cyan")
        table.add_column("Count", justify="right", style="green")
        for type_name, count in state.hardware_by_type().items():
            table.add_row(type_name, str(count))
        console.print(table)
        console.print(
            f"\n[green]Wrote {len(state.hardware)} hardware records and "
            f"{len(state.networks)} networks to {output_file}[/green]"
        )

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"\n[red]ERROR: SLS generation failed:[/red] {e}")
        raise typer.Exit(code=1) from e


@app.command()
def version() -> None:
    """Show version information and features."""
    console.print(
        Panel.fit(
            "[bold]siteinit[/bold]\n\n"
            f"Version: [cyan]{__version__}[/cyan]\n"
            "Python: 3.11+\n\n"
            "[bold]Core Features:[/bold]\n"
            "- Xname parsing and normalization\n"
            "- Cabinet groups and chassis layout\n"
            "- CSM network and subnet allocation\n"
            "- HMN connection classification\n"
            "- SLS hardware and network state generation\n\n"
            "[dim]Output loads directly into SLS[/dim]",
            title="About",
            border_style="blue",
        )
    )
