"""CLI entry point — command definitions using Click.

Commands:
    init      Generate a template config file
    run       Launch PMD on a source directory (fire-and-forget)
    catalog   Write a JSON catalog of the rules bundled with PMD
"""

import functools
import sys
from pathlib import Path

import click

from pmd_runner import __version__
from pmd_runner.catalog import DEFAULT_CATALOG_PATH


# ---------------------------------------------------------------------------
# Helpers shared by all commands
# ---------------------------------------------------------------------------

def _load_config(ctx: click.Context):
    """Load the config file, or built-in defaults when none exists. Exits on error."""
    from pmd_runner.config import DEFAULT_CONFIG_PATH, Config, ConfigError, load

    obj = ctx.obj
    config_path = obj["config_path"]

    if config_path is None and not Path(DEFAULT_CONFIG_PATH).exists():
        _verbose(ctx, "No config file found, using built-in defaults")
        return Config()

    try:
        config = load(config_path or DEFAULT_CONFIG_PATH)
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)

    _verbose(ctx, f"Using PMD {config.pmd_version} from '{config.pmd_home}'")
    return config


def _verbose(ctx: click.Context, message: str) -> None:
    if ctx.obj["verbose"]:
        click.echo(f"[verbose] {message}", err=True)


def _handle_errors(func):
    """Decorator that catches wrapper and catalog exceptions and exits cleanly."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from pmd_runner.catalog import CatalogError, NoSuchJarError
        from pmd_runner.wrapper import FormatError, LaunchError, PmdError

        try:
            return func(*args, **kwargs)
        except FormatError as exc:
            click.echo(f"Format error: {exc}", err=True)
            sys.exit(1)
        except LaunchError as exc:
            click.echo(f"Launch error: {exc}", err=True)
            sys.exit(1)
        except PmdError as exc:
            click.echo(f"PMD error: {exc}", err=True)
            sys.exit(1)
        except NoSuchJarError as exc:
            click.echo(f"{exc}. Check the PMD home and version.", err=True)
            sys.exit(1)
        except CatalogError as exc:
            click.echo(f"Catalog error: {exc}", err=True)
            sys.exit(1)

    return wrapper


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default=None,
              help="Path to the configuration file [default: pmd-config.yaml if present].")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable verbose logging.")
@click.version_option(__version__, prog_name="pmd-runner")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """Run the bundled PMD static analyzer and catalog its rules."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default="pmd-config.yaml", show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template pmd-config.yaml file."""
    from pmd_runner.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it with your PMD install dir, version and default ruleset.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------

@cli.command("run")
@click.argument("source")
@click.option("--rules", default=None,
              help="Ruleset name or path (overrides config default).")
@click.option("--format", "report_format", default=None,
              help="Report format: xml, csv or txt (overrides config default).")
@click.option("--report-file", default=None,
              help="File PMD writes the report to [default: pmd-report.<format>].")
@click.option("--dry-run", is_flag=True, default=False,
              help="Print the command line instead of launching PMD.")
@click.option("--wait", is_flag=True, default=False,
              help="Wait for PMD to finish and exit with its status.")
@click.pass_context
@_handle_errors
def run_command(ctx: click.Context, source: str, rules: str | None,
                report_format: str | None, report_file: str | None,
                dry_run: bool, wait: bool) -> None:
    """Launch PMD on SOURCE without waiting for the report."""
    from pmd_runner.launcher import resolve_launcher
    from pmd_runner.wrapper import AnalysisRequest, Format, PmdWrapper

    config = _load_config(ctx)
    rules = rules or config.rules
    if not rules:
        click.echo("No ruleset given: pass --rules or set 'defaults.rules' in the config.",
                   err=True)
        sys.exit(1)

    fmt = Format.parse(report_format) if report_format else config.format
    report_file = report_file or f"pmd-report.{fmt.value}"

    wrapper = PmdWrapper(launcher=resolve_launcher(pmd_home=config.pmd_home))

    if dry_run:
        click.echo(wrapper.build_command(AnalysisRequest(source, rules, fmt, report_file)))
        return

    _verbose(ctx, f"Launching PMD on '{source}' with '{rules}', report -> '{report_file}'")
    process = wrapper.run(source, rules, fmt, report_file)

    if wait:
        returncode = process.wait()
        if returncode < 0:
            # killed by signal N: exit 128 + N
            click.echo(f"PMD was terminated by signal {-returncode}", err=True)
            sys.exit(128 - returncode)
        _verbose(ctx, f"PMD exited with status {returncode}")
        sys.exit(returncode)

    click.echo(f"PMD started; report will be written to '{report_file}'", err=True)


# ---------------------------------------------------------------------------
# catalog
# ---------------------------------------------------------------------------

@cli.command("catalog")
@click.option("--pmd-version", default=None,
              help="PMD version used in jar names (overrides config).")
@click.option("--language", "languages", multiple=True,
              help="Language to catalog; repeat for several (overrides config).")
@click.option("--output", "output_path", default=DEFAULT_CATALOG_PATH, show_default=True,
              help="Where the JSON catalog is written.")
@click.pass_context
@_handle_errors
def catalog_command(ctx: click.Context, pmd_version: str | None,
                    languages: tuple[str, ...], output_path: str) -> None:
    """Catalog the rules, categories and rulesets bundled with PMD."""
    from pmd_runner.catalog import build_catalog, write_catalog

    config = _load_config(ctx)
    version = pmd_version or config.pmd_version
    langs = list(languages) or config.languages

    _verbose(ctx, f"Reading jars for {', '.join(langs)} from '{config.lib_dir}'")

    catalog = build_catalog(config.lib_dir, version, langs)
    write_catalog(catalog, output_path)
    click.echo(
        f"Catalog written to '{output_path}' "
        f"({len(catalog['rules'])} rules, {len(catalog['rulesets'])} rulesets)",
        err=True,
    )
