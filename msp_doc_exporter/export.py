"""
MSP Documentation Exporter - Main CLI Entry Point

Exports organizations, devices, contacts, documents and knowledge-base
articles from an MSP platform (Atera, IT Glue, NinjaOne, ITBoost) into a
tree of Markdown files with YAML front matter.
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config_loader import ConfigLoader, get_nested
from .errors import AuthenticationError, ExporterError
from .fetchers import ADAPTERS, AdapterFactory
from .logger import LOGGER_NAME, log_config, log_section, setup_logging
from .orchestrator import ExportOrchestrator


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='msp-export',
        description="Export MSP platform documentation to Markdown files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Credentials from the environment
  EXPORT_VENDOR=atera VENDOR_API_KEY=... msp-export

  # Settings from a YAML file
  msp-export --config exporter.yaml

  # Only two customers, preview without writing
  msp-export --vendor itglue --organization "Acme Corp" --organization 4242 --dry-run

  # Keep a JSON report and a debug log
  msp-export --report report.json --log-file export.log -v
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration YAML file (environment variables fill the gaps)'
    )

    parser.add_argument(
        '--vendor',
        choices=sorted(ADAPTERS),
        help='Vendor to export from (default: EXPORT_VENDOR)'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        help='Output directory (default: EXPORT_OUTPUT_DIR or ./export)'
    )

    parser.add_argument(
        '--organization',
        action='append',
        metavar='NAME_OR_ID',
        help='Only export this organization; may be repeated'
    )

    parser.add_argument(
        '--dry-run',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Fetch and render everything but write no files'
    )

    parser.add_argument(
        '--report',
        type=str,
        help='Write a JSON export report to this path'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also log to this file (rotated at 10 MB)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for DEBUG)'
    )

    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Only log warnings and errors'
    )

    return parser


def load_configuration(args: argparse.Namespace) -> dict:
    """
    Assemble configuration: YAML file, then environment, then CLI flags.

    Raises:
        FileNotFoundError: If ``--config`` points at a missing file
        ValueError: If the resulting configuration is invalid
    """
    base = ConfigLoader.load(args.config) if args.config else {}
    config = ConfigLoader.from_env(base=base)
    config = ConfigLoader.merge_with_args(config, args)
    ConfigLoader.validate(config)
    return config


def run_export(config: dict, args: argparse.Namespace, logger: logging.Logger) -> int:
    """Run one export; returns the process exit code."""
    adapter = AdapterFactory.create_adapter(config)
    orchestrator = ExportOrchestrator(adapter, config)

    try:
        report = orchestrator.run()
    except AuthenticationError as e:
        logger.error(f"Authentication with {adapter.display_name} failed: {e}")
        return 1
    except ExporterError as e:
        logger.error(f"Export aborted while {orchestrator.state.value.replace('_', ' ')}: {e}")
        return 1

    report.log_summary(logger)
    if not report.success:
        logger.warning(f"Export finished with {len(report.errors)} errors; see the log for details")

    if args.report:
        try:
            report.export_json_report(args.report, logger)
        except OSError as e:
            logger.error(f"Failed to export JSON report: {e}")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        verbosity = -1 if args.quiet else args.verbose
        setup_logging(verbosity=verbosity, log_file=args.log_file)
        logger = logging.getLogger(LOGGER_NAME)

        log_section("MSP Documentation Exporter")
        logger.info(f"Version: {__version__}")

        config = load_configuration(args)

        # Reconfigure logging now that the config may name a level or file
        if not args.verbose and not args.quiet and get_nested(config, 'logging.level'):
            setup_logging(
                log_file=args.log_file or get_nested(config, 'logging.file'),
                level=get_nested(config, 'logging.level')
            )
        elif get_nested(config, 'logging.file') and not args.log_file:
            setup_logging(verbosity=verbosity, log_file=get_nested(config, 'logging.file'))

        log_config(config)

        return run_export(config, args, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nExport interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"ERROR: Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
