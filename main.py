#!/usr/bin/env python3
"""
SOP Metrics Command-Line Interface

This script provides the command-line entry point for computing dashboard
and analytics metrics over exported SOP data. It coordinates the data
repository, the metrics assembler and the report visualizer: it reads one
snapshot of the exported tables, assembles the requested view for the
requested time window, and writes the result as JSON (plus optional charts).
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from config.settings import Settings
from sopmetrics.analyzers.metrics_assembler import MetricsAssembler
from sopmetrics.data.data_repository import DataRepository
from sopmetrics.data.exceptions import EntityReaderError
from sopmetrics.data.models.enums import ActiveView, TimeWindow
from sopmetrics.utils.safe_ops import safe_parse_datetime
from sopmetrics.visualizers.metrics_visualizer import MetricsVisualizer


class SopMetricsApp:
    """
    Main application class for the SOP metrics tool.

    This class coordinates the application workflow:
    - Parsing command line arguments
    - Setting up logging
    - Loading configuration and data
    - Assembling metrics and writing results
    """

    def __init__(self):
        """Initialize the application."""
        self.args = None
        self.settings = None
        self.logger = None
        self.data_repository = None
        self.assembler = None
        self.visualizer = None

    def run(self, argv: Optional[List[str]] = None) -> int:
        """
        Run the application.

        Args:
            argv: Optional argument list (defaults to ``sys.argv[1:]``)

        Returns:
            int: Exit code (0 for success, non-zero for errors)
        """
        try:
            self._parse_arguments(argv)
            self._setup_logging()
            self._load_configuration()

            if not self._initialize_components():
                return 1

            return self._execute_requested_operation()

        except Exception as e:
            if self.logger:
                self.logger.exception(f"Unhandled exception: {e}")
            else:
                print(f"ERROR: {e}", file=sys.stderr)
            return 1

    def _parse_arguments(self, argv: Optional[List[str]] = None) -> None:
        """Parse command line arguments."""
        parser = argparse.ArgumentParser(
            description="SOP dashboard and analytics metrics",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        )

        config_group = parser.add_argument_group("Configuration Options")
        config_group.add_argument("--config", type=str, help="Path to configuration file")
        config_group.add_argument(
            "--data-dir", type=str, help="Directory containing the exported JSON tables"
        )
        config_group.add_argument("--output-dir", type=str, help="Output directory for charts")
        config_group.add_argument("--log-dir", type=str, help="Directory for log files")

        metrics_group = parser.add_argument_group("Metrics Selection")
        metrics_group.add_argument(
            "--window",
            choices=[w.value for w in TimeWindow],
            help="Time window (defaults to the configured window)",
        )
        metrics_group.add_argument(
            "--view",
            choices=[v.value for v in ActiveView],
            help="Active view (defaults to the configured view)",
        )
        metrics_group.add_argument(
            "--user", metavar="ID", help="User id for the my_sops view"
        )
        metrics_group.add_argument(
            "--now",
            metavar="TIMESTAMP",
            help="Reference time as ISO-8601 or epoch milliseconds",
        )

        output_group = parser.add_argument_group("Output Options")
        output_group.add_argument(
            "--output", type=str, help="Write metrics JSON to this file instead of stdout"
        )
        output_group.add_argument(
            "--summary", action="store_true", help="Print a data summary instead of metrics"
        )
        output_group.add_argument(
            "--visualize", action="store_true", help="Render report charts to the output directory"
        )

        sys_group = parser.add_argument_group("System Options")
        sys_group.add_argument(
            "--log-level",
            choices=["DEBUG", "INFO", "WARNING", "ERROR"],
            help="Logging level (defaults to the configured level)",
        )

        self.args = parser.parse_args(argv)

    def _setup_logging(self) -> None:
        """Configure logging for the application."""
        log_level = getattr(logging, (self.args.log_level or "INFO").upper())

        log_path = Path(self.args.log_dir or "./logs")
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"sopmetrics_{timestamp}.log"

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

        # stdout carries the metrics JSON
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)
        root_logger.addHandler(file_handler)
        root_logger.addHandler(console_handler)

        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.info("Logging initialized")

    def _load_configuration(self) -> None:
        """Load configuration settings and apply command line overrides."""
        self.logger.info("Loading configuration settings")
        self.settings = Settings(config_path=self.args.config)

        if self.args.data_dir:
            self.logger.info(f"Using data directory from arguments: {self.args.data_dir}")
            self.settings.use_data_dir(self.args.data_dir)

        if self.args.output_dir:
            self.logger.info(f"Using output directory from arguments: {self.args.output_dir}")
            self.settings.OUTPUT_DIR = Path(self.args.output_dir)

        if self.args.log_dir:
            self.settings.LOG_DIR = Path(self.args.log_dir)

        self.settings.create_directories()

        if self.args.log_level is None:
            logging.getLogger().setLevel(self.settings.LOG_LEVEL.upper())

        self.logger.info("Configuration loaded successfully")

    def _initialize_components(self) -> bool:
        """
        Initialize the core components of the system.

        Returns:
            bool: True if initialization was successful, False otherwise
        """
        try:
            self.logger.info("Initializing data repository")
            self.data_repository = DataRepository(self.settings)

            if self.args.data_dir:
                result = self.data_repository.load_data_from_directory(self.args.data_dir)
                for filename, count in result.items():
                    self.logger.info(f"Loaded {count} records from {filename}")
            else:
                self.logger.info("Connecting to default data sources")
                self.data_repository.connect()

            self.assembler = MetricsAssembler(self.settings)

            if self.args.visualize:
                self.visualizer = MetricsVisualizer(self.settings.OUTPUT_DIR)

            self.logger.info("All components initialized successfully")
            return True

        except EntityReaderError as e:
            self.logger.error(f"Could not read data: {e}")
            return False

    def _execute_requested_operation(self) -> int:
        """
        Execute the requested summary or metrics assembly.

        Returns:
            int: Exit code (0 for success, non-zero for errors)
        """
        if self.args.summary:
            return self._generate_data_summary()
        return self._generate_metrics()

    def _generate_data_summary(self) -> int:
        summary = self.data_repository.get_data_summary()
        self._write_output(json.dumps(summary, indent=2, default=str))
        return 0

    def _generate_metrics(self) -> int:
        window = self.args.window or self.settings.DEFAULT_TIME_WINDOW
        view = self.args.view or self.settings.DEFAULT_VIEW
        now = safe_parse_datetime(self.args.now) if self.args.now else None

        try:
            metrics = self.assembler.assemble_from_reader(
                self.data_repository,
                window=window,
                view=view,
                now=now,
                user_id=self.args.user,
            )
        except EntityReaderError as e:
            self.logger.error(f"Could not read data: {e}")
            return 1
        except ValueError as e:
            self.logger.error(f"Invalid request: {e}")
            return 2

        if metrics.skipped_records:
            self.logger.warning(f"{metrics.skipped_records} invalid records were skipped")

        self._write_output(metrics.to_json(indent=2))

        if self.visualizer is not None:
            saved = self.visualizer.render_all(metrics)
            self.logger.info(f"Saved {len(saved)} chart files")

        return 0

    def _write_output(self, text: str) -> None:
        if self.args.output:
            output_path = Path(self.args.output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(text + "\n", encoding="utf-8")
            self.logger.info(f"Results written to {output_path}")
        else:
            sys.stdout.write(text + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to run the SOP metrics application."""
    app = SopMetricsApp()
    return app.run(argv)


if __name__ == "__main__":
    sys.exit(main())
