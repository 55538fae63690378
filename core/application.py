"""Command line application for phantom landmark registration."""

import argparse
import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from config.loader import ConfigLoader
from config.settings import ApplicationConfig
from registration import (
    PhantomRegistrationAlgo, PhantomRegistrationError, RegistrationResult
)
from utils.logging_config import OperationLogger, setup_logging

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_OUT_OF_TOLERANCE = 1
EXIT_FAILURE = 2


def load_recorded_landmarks(file_path: Path) -> List[Any]:
    """Read recorded landmark positions from a YAML or JSON file.

    The file holds either a list of positions or a mapping with a
    'recorded_landmarks' list. Each entry is [x, y, z] or a mapping with a
    'position' key, listed in the same order as the defined landmarks.
    """
    data = ConfigLoader.load_file(file_path)
    if isinstance(data, dict):
        data = data.get("recorded_landmarks")
    if not isinstance(data, list):
        raise ValueError(f"No recorded landmark list found in {file_path}")

    return [entry.get("position") if isinstance(entry, dict) else entry for entry in data]


class PhantomRegistrationApplication:
    """Wires configuration, logging and the registration algorithm together."""

    def __init__(self, config_file: Optional[Path] = None,
                 config_loader: Optional[ConfigLoader] = None):
        """Initialize the application.

        Args:
            config_file: Optional configuration file to load.
            config_loader: Loader to use, mainly for tests.
        """
        self.config_loader = config_loader or ConfigLoader()
        self.config: Optional[ApplicationConfig] = None
        self.algo: Optional[PhantomRegistrationAlgo] = None

        self._load_config(config_file)

    def _load_config(self, config_file: Optional[Path] = None) -> None:
        self.config = self.config_loader.load(config_file)

        if not self.config_loader.validate(self.config):
            raise ValueError("Configuration validation failed")

    def setup_logging(self) -> None:
        setup_logging(
            log_dir=self.config.log_dir,
            log_level="DEBUG" if self.config.debug_mode else "INFO",
            file_output=self.config.log_to_file,
            verbose=self.config.verbose_logging
        )

    def register(self, recorded_positions: Sequence[Sequence[float]]) -> RegistrationResult:
        """Register the configured phantom against recorded positions.

        Raises:
            PhantomRegistrationError: If registration is not possible.
        """
        self.algo = PhantomRegistrationAlgo(self.config.registration.degeneracy_tolerance)
        self.algo.read_configuration(self.config.to_dict())
        self.algo.set_recorded_landmarks(recorded_positions)
        return self.algo.register()

    def run(self, recorded_file: Path, output_file: Optional[Path] = None) -> int:
        """Run a registration and report the outcome.

        Returns:
            Process exit code.
        """
        try:
            recorded = load_recorded_landmarks(recorded_file)
        except (OSError, ValueError) as e:
            logger.error(f"Cannot read recorded landmarks: {e}")
            return EXIT_FAILURE

        # OperationLogger reports the failure
        try:
            with OperationLogger("phantom registration", logger):
                result = self.register(recorded)
        except (PhantomRegistrationError, ValueError):
            return EXIT_FAILURE

        max_error = self.config.registration.max_registration_error
        logger.info(f"Phantom to reference transform:\n{result.matrix}")

        if output_file is None and self.config.registration.output_file:
            output_file = Path(self.config.registration.output_file)
        if output_file is not None:
            ConfigLoader.dump(result.to_dict(), output_file)
            logger.info(f"Registration result saved to {output_file}")

        if not result.within_tolerance(max_error):
            logger.warning(
                f"Registration error {result.error:.4f} exceeds the accepted maximum of {max_error}"
            )
            return EXIT_OUT_OF_TOLERANCE

        logger.info("Phantom registration successful")
        return EXIT_SUCCESS


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the application."""
    parser = argparse.ArgumentParser(description="Phantom landmark registration")
    parser.add_argument(
        "recorded",
        type=Path,
        help="YAML or JSON file with recorded landmark positions"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Configuration file path"
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Write the registration result to this YAML or JSON file"
    )
    parser.add_argument(
        "--max-error",
        type=float,
        help="Override the maximum accepted registration error"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args(argv)

    try:
        app = PhantomRegistrationApplication(args.config)
    except (OSError, ValueError) as e:
        setup_logging()
        logger.error(f"Failed to load configuration: {e}")
        return EXIT_FAILURE

    # Override config with command line arguments
    if args.debug:
        app.config.debug_mode = True
    if args.max_error is not None:
        app.config.registration.max_registration_error = args.max_error

    app.setup_logging()
    return app.run(args.recorded, args.output)


if __name__ == "__main__":
    sys.exit(main())
