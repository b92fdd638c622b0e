#!/usr/bin/env python3
"""
CLI Router for perfwatch.

Post-run performance reporting for the end-to-end test suite.
"""

import argparse
import logging
import sys
from typing import Optional, List

from commands import get_command, COMMANDS
from core.config import get_config_manager
from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CLIRouter:
    """
    CLI router for performance reporting commands.

    Command structure:
    - python run.py report generate --no-trends --verbose
    - python run.py trends show
    - python run.py signals parse test-output.log --format json
    - python run.py ci outputs
    """

    def __init__(self, container=None):
        """Initialize CLI router."""
        self.container = container
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            prog="perfwatch",
            description="Performance metrics reporting for end-to-end test runs",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self._get_examples_text()
        )

        subparsers = parser.add_subparsers(
            dest='command',
            help='Available commands',
            metavar='{command}'
        )

        self._add_report_parser(subparsers)
        self._add_trends_parser(subparsers)
        self._add_signals_parser(subparsers)
        self._add_ci_parser(subparsers)
        self._add_integrations_parser(subparsers)
        self._command_parsers = subparsers.choices

        return parser

    def _add_report_parser(self, subparsers):
        """Add report command parser."""
        report_parser = subparsers.add_parser(
            'report',
            help='Aggregate metrics and generate reports'
        )

        report_subparsers = report_parser.add_subparsers(
            dest='subcommand',
            help='Report operations',
            metavar='{generate,summary}'
        )

        generate_parser = report_subparsers.add_parser('generate', help='Generate every report for the finished run')
        generate_parser.add_argument('--results', help='Test results JSON (default: search the usual locations)')
        generate_parser.add_argument('--output-dir', help='Root directory for inputs and reports (default: PERF_OUTPUT_DIR or .)')
        generate_parser.add_argument('--no-trends', action='store_true', help='Skip updating the trend history')
        generate_parser.add_argument('--no-ci', action='store_true', help='Skip GitHub step summary, annotations and outputs')
        generate_parser.add_argument('--slack', action='store_true', help='Send the run summary to Slack')
        generate_parser.add_argument('--verbose', action='store_true', help='Verbose output')

        summary_parser = report_subparsers.add_parser('summary', help='Print the JSON run summary')
        summary_parser.add_argument('--results', help='Test results JSON (default: search the usual locations)')
        summary_parser.add_argument('--output-dir', help='Root directory for inputs (default: PERF_OUTPUT_DIR or .)')

    def _add_trends_parser(self, subparsers):
        """Add trends command parser."""
        trends_parser = subparsers.add_parser(
            'trends',
            help='Run-over-run trend history'
        )

        trends_subparsers = trends_parser.add_subparsers(
            dest='subcommand',
            help='Trend operations',
            metavar='{show,compare}'
        )

        show_parser = trends_subparsers.add_parser('show', help='Print the trend report')
        show_parser.add_argument('--file', help='Trend history file (default: PERF_TRENDS_FILE)')

        compare_parser = trends_subparsers.add_parser('compare', help='Compare the two most recent runs')
        compare_parser.add_argument('--file', help='Trend history file (default: PERF_TRENDS_FILE)')

    def _add_signals_parser(self, subparsers):
        """Add signals command parser."""
        signals_parser = subparsers.add_parser(
            'signals',
            help='Recover metrics from captured test output'
        )

        signals_subparsers = signals_parser.add_subparsers(
            dest='subcommand',
            help='Signal operations',
            metavar='{parse}'
        )

        parse_parser = signals_subparsers.add_parser('parse', help='Parse a captured log file')
        parse_parser.add_argument('file', help='Log file to parse')
        parse_parser.add_argument('--format', choices=['text', 'json'], default='text', help='Output format')

    def _add_ci_parser(self, subparsers):
        """Add ci command parser."""
        ci_parser = subparsers.add_parser(
            'ci',
            help='GitHub Actions side channels'
        )

        ci_subparsers = ci_parser.add_subparsers(
            dest='subcommand',
            help='CI operations',
            metavar='{annotate,outputs,summary}'
        )

        ci_subparsers.add_parser('annotate', help='Emit workflow annotations')
        ci_subparsers.add_parser('outputs', help='Publish step outputs')
        ci_subparsers.add_parser('summary', help='Append the job step summary')

    def _add_integrations_parser(self, subparsers):
        """Add integrations command parser."""
        integrations_parser = subparsers.add_parser(
            'integrations',
            help='External integration management'
        )

        integrations_subparsers = integrations_parser.add_subparsers(
            dest='subcommand',
            help='Integration operations',
            metavar='{status,slack}'
        )

        integrations_subparsers.add_parser('status', help='Show integration status')

        slack_parser = integrations_subparsers.add_parser('slack', help='Slack integration management')
        slack_parser.add_argument('--action', choices=['test', 'send'], default='test', help='Action to perform')
        slack_parser.add_argument('--message', help='Message to send (for send action)')

    def _get_examples_text(self) -> str:
        """Get examples text for help."""
        return """
Examples:
  # After the test job (CI mode picks up GITHUB_* variables)
  python run.py report generate
  python run.py report generate --slack

  # Local runs
  python run.py report generate --no-ci --no-trends --verbose
  python run.py report summary --results test-reports/test-results.json

  # Other commands
  python run.py trends show
  python run.py signals parse test-output.log --format json
  python run.py ci outputs
  python run.py integrations status

"""

    def route_command(self, args: Optional[List[str]] = None) -> int:
        """
        Route command to appropriate handler.

        Args:
            args: Command line arguments (uses sys.argv if None)

        Returns:
            Exit code
        """
        try:
            if args is None:
                args = sys.argv[1:]

            parsed_args = self.parser.parse_args(args)

            if not parsed_args.command:
                self.parser.print_help()
                return 1

            return self._handle_command(parsed_args)

        except SystemExit as e:
            # argparse calls sys.exit() on error or help
            return e.code if e.code is not None else 0
        except Exception as e:
            logger.error(f"CLI routing error: {e}", exc_info=True)
            return 1

    def _handle_command(self, args: argparse.Namespace) -> int:
        """Handle command structure."""
        logger.debug(f"Handling command: {args.command}")

        if args.command not in COMMANDS:
            available = ', '.join(COMMANDS.keys())
            logger.error(f"Unknown command '{args.command}'. Available: {available}")
            return 1

        subcommand = getattr(args, 'subcommand', None)
        if not subcommand:
            logger.error(f"No subcommand specified for '{args.command}'")
            self._command_parsers[args.command].print_help()
            return 1

        command = get_command(args.command, self.container)
        return command.execute(subcommand, args)


def main(args: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        get_config_manager().update_logging()
    except ConfigurationError as e:
        # The command itself reports invalid configuration with its exit code
        logger.warning(f"⚠️ Keeping default logging: {e.message}")

    router = CLIRouter()
    return router.route_command(args)


if __name__ == '__main__':
    sys.exit(main())
