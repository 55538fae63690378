"""Landmark based phantom registration."""

from .errors import (
    PhantomRegistrationError, InsufficientLandmarksError,
    MismatchedCorrespondenceCountError, DegenerateGeometryError,
    EmptyCorrespondenceSetError, ConfigurationError
)
from .landmarks import Landmark, LandmarkStore
from .similarity import (
    SimilarityTransform, estimate_similarity_transform,
    compute_registration_error, compute_residuals
)
from .phantom_registration import PhantomRegistrationAlgo, RegistrationResult

__all__ = [
    'PhantomRegistrationError', 'InsufficientLandmarksError',
    'MismatchedCorrespondenceCountError', 'DegenerateGeometryError',
    'EmptyCorrespondenceSetError', 'ConfigurationError',
    'Landmark', 'LandmarkStore',
    'SimilarityTransform', 'estimate_similarity_transform',
    'compute_registration_error', 'compute_residuals',
    'PhantomRegistrationAlgo', 'RegistrationResult'
]
