"""Closed-form similarity transform estimation from landmark correspondences.

The estimator solves the absolute orientation problem: find the rotation R,
uniform scale s and translation t minimising

    sum_i || s * R * d_i + t - r_i ||^2

for defined points d_i and recorded points r_i, using the SVD of the
cross-covariance of the centered point sets (Umeyama's method). The rotation
is constrained to be proper, so mirrored inputs never produce a reflection.
"""

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import cv2
import numpy as np

from .errors import (
    DegenerateGeometryError,
    EmptyCorrespondenceSetError,
    InsufficientLandmarksError,
    MismatchedCorrespondenceCountError,
)
from .landmarks import LandmarkStore

logger = logging.getLogger(__name__)

MIN_LANDMARK_COUNT = 3
DEFAULT_DEGENERACY_TOLERANCE = 1e-6


@dataclass
class SimilarityTransform:
    """Rotation, uniform scale and translation mapping phantom to reference."""
    rotation: np.ndarray
    scale: float
    translation: np.ndarray

    @property
    def matrix(self) -> np.ndarray:
        """4x4 homogeneous matrix with scale * rotation in the upper-left block."""
        matrix = np.eye(4)
        matrix[:3, :3] = self.scale * self.rotation
        matrix[:3, 3] = self.translation
        return matrix

    @property
    def rotation_vector(self) -> np.ndarray:
        """Rotation as axis * angle (radians)."""
        rvec, _ = cv2.Rodrigues(np.asarray(self.rotation, dtype=np.float64))
        return rvec.reshape(3)

    @classmethod
    def from_parameters(cls, rotation_vector: Sequence[float], scale: float,
                        translation: Sequence[float]) -> "SimilarityTransform":
        """Build a transform from a rotation vector, scale and translation."""
        if scale <= 0:
            raise ValueError(f"Scale must be positive, got {scale}")
        rvec = np.asarray(rotation_vector, dtype=np.float64).reshape(3, 1)
        rotation, _ = cv2.Rodrigues(rvec)
        return cls(rotation, float(scale), np.asarray(translation, dtype=float).reshape(3))

    @classmethod
    def from_matrix(cls, matrix: np.ndarray, atol: float = 1e-6) -> "SimilarityTransform":
        """Decompose a 4x4 homogeneous similarity matrix.

        Raises:
            ValueError: If the matrix is not a proper similarity transform.
        """
        matrix = _as_homogeneous_matrix(matrix)
        linear = matrix[:3, :3]
        determinant = np.linalg.det(linear)
        if determinant <= 0:
            raise ValueError("Matrix does not contain a proper rotation with positive scale")

        scale = float(np.cbrt(determinant))
        rotation = linear / scale
        if not np.allclose(rotation @ rotation.T, np.eye(3), atol=atol):
            raise ValueError("Upper-left block is not a uniformly scaled rotation")
        return cls(rotation, scale, matrix[:3, 3].copy())

    @classmethod
    def identity(cls) -> "SimilarityTransform":
        return cls(np.eye(3), 1.0, np.zeros(3))

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Map (N, 3) or (3,) points from the phantom to the reference frame."""
        points = np.asarray(points, dtype=float)
        return self.scale * points @ self.rotation.T + self.translation

    def inverse(self) -> "SimilarityTransform":
        rotation = self.rotation.T
        scale = 1.0 / self.scale
        return SimilarityTransform(rotation, scale, -scale * rotation @ self.translation)

    def to_dict(self):
        return {
            "matrix": self.matrix.tolist(),
            "rotation": self.rotation.tolist(),
            "scale": float(self.scale),
            "translation": self.translation.tolist(),
        }


def _as_homogeneous_matrix(transform: Union[SimilarityTransform, np.ndarray]) -> np.ndarray:
    if isinstance(transform, SimilarityTransform):
        return transform.matrix
    matrix = np.asarray(transform, dtype=float)
    if matrix.shape != (4, 4):
        raise ValueError(f"Transform must be a 4x4 matrix, got shape {matrix.shape}")
    return matrix


def _paired_points(store: LandmarkStore) -> Tuple[np.ndarray, np.ndarray]:
    """Defined and recorded points for the indices both sets share."""
    defined_indices = store.defined_indices()
    recorded_indices = store.recorded_indices()

    if len(defined_indices) != len(recorded_indices):
        raise MismatchedCorrespondenceCountError(len(defined_indices), len(recorded_indices))
    if defined_indices != recorded_indices:
        unpaired = sorted(set(defined_indices) ^ set(recorded_indices))
        raise MismatchedCorrespondenceCountError(
            len(defined_indices), len(recorded_indices),
            f"unpaired landmark indices {unpaired}"
        )
    return store.defined_points(), store.recorded_points()


def _is_collapsed(singular_values: np.ndarray, points: np.ndarray,
                  tolerance: float) -> bool:
    """True if centered points span less than a plane."""
    magnitude = max(1.0, float(np.abs(points).max()))
    if singular_values[0] <= np.finfo(float).eps * magnitude * len(points):
        return True
    return singular_values[1] <= tolerance * singular_values[0]


def estimate_similarity_transform(store: LandmarkStore,
                                  degeneracy_tolerance: float = DEFAULT_DEGENERACY_TOLERANCE
                                  ) -> SimilarityTransform:
    """Estimate the similarity transform mapping defined to recorded landmarks.

    Args:
        store: Landmark correspondences.
        degeneracy_tolerance: Ratio of second to largest singular value below
            which a point set is treated as collinear. The cross-covariance
            is checked against its square.

    Returns:
        The least-squares similarity transform.

    Raises:
        MismatchedCorrespondenceCountError: Defined and recorded sets differ.
        InsufficientLandmarksError: Fewer than three correspondences.
        DegenerateGeometryError: Points are coincident or collinear.
    """
    defined, recorded = _paired_points(store)

    count = len(recorded)
    if count < MIN_LANDMARK_COUNT:
        raise InsufficientLandmarksError(count, MIN_LANDMARK_COUNT)

    defined_centroid = defined.mean(axis=0)
    recorded_centroid = recorded.mean(axis=0)
    d = defined - defined_centroid
    r = recorded - recorded_centroid

    if _is_collapsed(np.linalg.svd(d, compute_uv=False), defined, degeneracy_tolerance):
        raise DegenerateGeometryError("Defined landmarks are coincident or collinear")
    if _is_collapsed(np.linalg.svd(r, compute_uv=False), recorded, degeneracy_tolerance):
        raise DegenerateGeometryError("Recorded landmarks are coincident or collinear")

    covariance = d.T @ r
    u, singular_values, vt = np.linalg.svd(covariance)
    # Cross-covariance singular values scale with squared point spread
    if singular_values[1] <= degeneracy_tolerance ** 2 * singular_values[0]:
        raise DegenerateGeometryError("Landmark cross-covariance is rank deficient")

    v = vt.T
    rotation = v @ u.T
    if np.linalg.det(rotation) < 0:
        # numpy orders singular values descending, so the last column pairs with the smallest
        logger.debug("Reflection detected, correcting to a proper rotation")
        v[:, 2] *= -1
        rotation = v @ u.T

    scale = float(np.sum(r * (d @ rotation.T)) / np.sum(d * d))
    if scale <= 0:
        raise DegenerateGeometryError(f"Estimated scale is not positive ({scale})")

    translation = recorded_centroid - scale * rotation @ defined_centroid
    return SimilarityTransform(rotation, scale, translation)


def compute_residuals(transform: Union[SimilarityTransform, np.ndarray],
                      store: LandmarkStore) -> np.ndarray:
    """Euclidean distance between each transformed defined point and its recorded point."""
    matrix = _as_homogeneous_matrix(transform)
    if store.count() == 0:
        raise EmptyCorrespondenceSetError()

    defined, recorded = _paired_points(store)
    homogeneous = np.hstack([defined, np.ones((len(defined), 1))])
    transformed = (homogeneous @ matrix.T)[:, :3]
    return np.sqrt(np.sum((transformed - recorded) ** 2, axis=1))


def compute_registration_error(transform: Union[SimilarityTransform, np.ndarray],
                               store: LandmarkStore) -> float:
    """Mean Euclidean distance between transformed defined and recorded landmarks.

    This is the arithmetic mean of the distances, not the RMS.

    Raises:
        EmptyCorrespondenceSetError: The store holds no recorded landmarks.
    """
    residuals = compute_residuals(transform, store)
    error = float(np.mean(residuals))
    logger.debug(f"Registration error = {error}")
    return error
