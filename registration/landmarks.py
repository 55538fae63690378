"""Landmark correspondence storage for phantom registration."""

import copy
import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np

logger = logging.getLogger(__name__)


def as_position(position: Sequence[float]) -> np.ndarray:
    """Convert a position to a float array of shape (3,).

    Raises:
        ValueError: If the position is not three finite numbers.
    """
    try:
        array = np.asarray(position, dtype=float)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid landmark position {position!r}: {e}") from e

    if array.shape != (3,):
        raise ValueError(f"Landmark position must have 3 coordinates, got shape {array.shape}")
    if not np.all(np.isfinite(array)):
        raise ValueError(f"Landmark position must be finite, got {array.tolist()}")
    return array


@dataclass
class Landmark:
    """A named point in 3D space."""
    position: np.ndarray
    name: str = ""

    def to_dict(self):
        return {"name": self.name, "position": [float(v) for v in self.position]}


class LandmarkStore:
    """Holds defined and recorded landmarks paired by index.

    Defined landmarks are in the phantom coordinate system, recorded
    landmarks are in the tracker reference coordinate system. Entries with
    the same index refer to the same physical point. Consistency between
    the two sets is checked by the estimator, not on insertion.
    """

    def __init__(self):
        self._defined: Dict[int, Landmark] = {}
        self._recorded: Dict[int, Landmark] = {}

    def reset(self) -> None:
        """Remove all defined and recorded landmarks."""
        self._defined.clear()
        self._recorded.clear()

    def clear_recorded(self) -> None:
        """Remove recorded landmarks, keeping the defined ones."""
        self._recorded.clear()

    def add_defined_landmark(self, name: str, position: Sequence[float], index: int) -> None:
        """Insert a defined landmark, replacing any landmark already at index.

        Args:
            name: Human readable landmark name, may be empty.
            position: Position in the phantom coordinate system.
            index: 0-based correspondence index.
        """
        self._check_index(index)
        self._defined[index] = Landmark(as_position(position), name or "")

    def add_recorded_landmark(self, position: Sequence[float], index: int) -> None:
        """Insert a recorded landmark, replacing any landmark already at index.

        Args:
            position: Position in the tracker reference coordinate system.
            index: 0-based correspondence index.
        """
        self._check_index(index)
        self._recorded[index] = Landmark(as_position(position))

    def count(self) -> int:
        """Number of recorded landmarks, the operative count for registration."""
        return len(self._recorded)

    def defined_count(self) -> int:
        return len(self._defined)

    def defined_indices(self) -> List[int]:
        return sorted(self._defined)

    def recorded_indices(self) -> List[int]:
        return sorted(self._recorded)

    def defined_landmark_names(self) -> List[str]:
        return [self._defined[i].name for i in self.defined_indices()]

    def get_defined_landmark(self, index: int) -> Landmark:
        return self._defined[index]

    def get_recorded_landmark(self, index: int) -> Landmark:
        return self._recorded[index]

    def defined_points(self) -> np.ndarray:
        """Defined positions as an (N, 3) array ordered by index."""
        return self._stack(self._defined)

    def recorded_points(self) -> np.ndarray:
        """Recorded positions as an (N, 3) array ordered by index."""
        return self._stack(self._recorded)

    def copy(self) -> "LandmarkStore":
        """Independent snapshot, safe to hand to another thread."""
        snapshot = LandmarkStore()
        snapshot._defined = copy.deepcopy(self._defined)
        snapshot._recorded = copy.deepcopy(self._recorded)
        return snapshot

    def __len__(self):
        return self.count()

    def __repr__(self):
        return (f"LandmarkStore(defined={self.defined_count()}, "
                f"recorded={self.count()})")

    @staticmethod
    def _check_index(index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, (int, np.integer)):
            raise ValueError(f"Landmark index must be an integer, got {index!r}")
        if index < 0:
            raise ValueError(f"Landmark index must be non-negative, got {index}")

    @staticmethod
    def _stack(landmarks: Dict[int, Landmark]) -> np.ndarray:
        if not landmarks:
            return np.empty((0, 3), dtype=float)
        return np.array([landmarks[i].position for i in sorted(landmarks)], dtype=float)
