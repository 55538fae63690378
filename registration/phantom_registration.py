"""Phantom to reference registration from defined and recorded landmarks."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .errors import ConfigurationError, PhantomRegistrationError
from .landmarks import LandmarkStore, as_position
from .similarity import (
    DEFAULT_DEGENERACY_TOLERANCE,
    SimilarityTransform,
    compute_residuals,
    estimate_similarity_transform,
)

logger = logging.getLogger(__name__)


@dataclass
class RegistrationResult:
    """Outcome of a successful phantom registration."""
    transform: SimilarityTransform
    error: float
    residuals: np.ndarray
    landmark_count: int

    @property
    def matrix(self) -> np.ndarray:
        return self.transform.matrix

    def within_tolerance(self, max_error: float) -> bool:
        return self.error <= max_error

    def to_dict(self):
        return {
            "phantom_to_reference_transform": self.transform.to_dict(),
            "registration_error": self.error,
            "residuals": self.residuals.tolist(),
            "landmark_count": self.landmark_count,
        }


class PhantomRegistrationAlgo:
    """Registers a phantom's defined landmarks to tracker-recorded landmarks."""

    def __init__(self, degeneracy_tolerance: float = DEFAULT_DEGENERACY_TOLERANCE):
        """Initialize the registration algorithm.

        Args:
            degeneracy_tolerance: Relative singular value threshold for
                rejecting collinear landmark configurations.
        """
        self.degeneracy_tolerance = degeneracy_tolerance
        self.landmarks = LandmarkStore()

        self.phantom_to_reference_transform: Optional[SimilarityTransform] = None
        self.registration_error = -1.0
        self.result: Optional[RegistrationResult] = None

    def read_configuration(self, config: Optional[Dict[str, Any]]) -> int:
        """Load defined landmarks from a phantom definition.

        Malformed landmark entries are skipped with a warning.

        Args:
            config: Mapping containing a phantom_definition section.

        Returns:
            Number of defined landmarks loaded.

        Raises:
            ConfigurationError: If the definition or its landmarks are missing,
                or no valid landmark was found.
        """
        if config is None:
            raise ConfigurationError("Invalid configuration: no configuration supplied")

        phantom_definition = config.get("phantom_definition")
        if not isinstance(phantom_definition, dict):
            raise ConfigurationError("No phantom definition found in the configuration")

        geometry = phantom_definition.get("geometry")
        if not isinstance(geometry, dict):
            raise ConfigurationError("Phantom geometry information not found")

        landmarks = geometry.get("landmarks")
        if not isinstance(landmarks, list):
            raise ConfigurationError("Landmarks not found, registration is not possible")

        self.landmarks.reset()

        for index, entry in enumerate(landmarks):
            if not isinstance(entry, dict):
                logger.warning(f"Invalid landmark definition found at index {index}")
                continue

            try:
                position = as_position(entry.get("position"))
            except ValueError as e:
                logger.warning(f"Invalid landmark position at index {index}: {e}")
                continue

            # Valid landmarks are numbered consecutively to match the recorded order
            self.landmarks.add_defined_landmark(str(entry.get("name") or ""), position,
                                                self.landmarks.defined_count())

        if self.landmarks.defined_count() != len(landmarks):
            logger.warning("Some invalid landmarks were found!")

        if self.landmarks.defined_count() == 0:
            raise ConfigurationError("No valid landmarks were found")

        logger.info(f"Loaded {self.landmarks.defined_count()} defined landmarks")
        return self.landmarks.defined_count()

    def set_defined_landmarks(self, positions: Sequence[Sequence[float]],
                              names: Optional[Sequence[str]] = None) -> None:
        """Replace the defined landmarks, indexed by list order."""
        if names is not None and len(names) != len(positions):
            raise ValueError("Number of names must match number of positions")

        self.landmarks.reset()
        for index, position in enumerate(positions):
            name = names[index] if names is not None else ""
            self.landmarks.add_defined_landmark(name, position, index)

    def set_recorded_landmarks(self, positions: Sequence[Sequence[float]]) -> None:
        """Record tracker positions in the same order as the defined landmarks.

        Previously recorded landmarks are discarded, defined ones are kept.
        """
        self.landmarks.clear_recorded()
        for index, position in enumerate(positions):
            self.landmarks.add_recorded_landmark(position, index)

    def register(self) -> RegistrationResult:
        """Compute the phantom to reference transform and its error.

        Returns:
            Registration result with transform and mean landmark error.

        Raises:
            PhantomRegistrationError: If the landmarks cannot be registered.
                No result is published in that case.
        """
        self.phantom_to_reference_transform = None
        self.registration_error = -1.0
        self.result = None

        names = {i: self.landmarks.get_defined_landmark(i).name
                 for i in self.landmarks.defined_indices()}
        for index in self.landmarks.recorded_indices():
            recorded = self.landmarks.get_recorded_landmark(index).position
            defined = (self.landmarks.get_defined_landmark(index).position
                       if index in names else None)
            logger.debug(f"Phantom point {index} ({names.get(index, '')}): "
                         f"Defined: {defined}  Recorded: {recorded}")

        transform = estimate_similarity_transform(self.landmarks, self.degeneracy_tolerance)
        logger.debug(f"PhantomToReferenceTransformMatrix:\n{transform.matrix}")

        residuals = compute_residuals(transform, self.landmarks)
        error = float(np.mean(residuals))

        self.phantom_to_reference_transform = transform
        self.registration_error = error
        self.result = RegistrationResult(transform, error, residuals, len(residuals))

        logger.info(f"Registration error = {error:.4f}")
        return self.result

    def is_within_tolerance(self, max_error: float) -> bool:
        """Check the last registration error against an acceptance threshold."""
        if self.result is None:
            raise PhantomRegistrationError("No registration result available")
        return self.result.within_tolerance(max_error)

    def get_defined_landmark_names(self) -> List[str]:
        return self.landmarks.defined_landmark_names()
