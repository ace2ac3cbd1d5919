"""
Command-line interface for the TRX report converter.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .config import ConfigurationError, load_config, validate_config
from .converter import TrxConverter
from .exceptions import TrxReportError

logger = logging.getLogger(__name__)


@click.command()
@click.argument("result_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to configuration file (YAML)",
)
@click.option(
    "--output",
    type=click.Path(),
    help="Output file for the JSON report (default: stdout)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="WARNING",
    help="Logging level",
)
def main(
    result_file: str,
    config: Optional[str],
    output: Optional[str],
    log_level: str,
) -> None:
    """
    Convert an MSTest result (.trx) file into a JSON report model.

    Examples:

      # Print the report for one file
      trx-report TestResults/run.trx

      # Write it to a file with a custom configuration
      trx-report run.trx --config trx-report.yaml --output report.json
    """
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stderr,
    )

    try:
        converter_config = load_config(config)

        errors = validate_config(converter_config)
        if errors:
            click.echo("Configuration errors:", err=True)
            for error in errors:
                click.echo(f"  - {error}", err=True)
            sys.exit(1)

        result = TrxConverter(converter_config).convert(result_file)
        document = json.dumps(result.to_dict(), indent=2)

        if output:
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(document)
            click.echo(f"Report written to: {output}", err=True)
        else:
            click.echo(document)

        for diagnostic in result.diagnostics:
            click.echo(f"Warning: {diagnostic.source}: {diagnostic.reason}", err=True)

        sys.exit(0)

    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except TrxReportError as e:
        logger.error("Conversion failed: %s", e)
        click.echo(f"Conversion failed: {e}", err=True)
        sys.exit(1)
    except FileNotFoundError as e:
        logger.error("File not found: %s", e)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
