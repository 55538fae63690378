"""Configuration settings classes for the phantom registration application."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pathlib import Path


def _section(data: Any, name: str, expected: type = dict) -> Any:
    """Return a configuration section, empty if absent.

    Raises:
        ValueError: If the section is present but of the wrong type.
    """
    if data is None:
        return expected()
    if not isinstance(data, expected):
        raise ValueError(
            f"Configuration section '{name}' must be a {expected.__name__}, "
            f"got {type(data).__name__}"
        )
    return data


@dataclass
class PhantomDefinitionConfig:
    """Phantom geometry definition.

    Landmark entries are kept as written in the configuration file, each
    expected to hold a name and a [x, y, z] position in the phantom
    coordinate system. They are validated when read for registration so
    that a malformed entry only drops that landmark.
    """

    name: str = "phantom"
    description: str = ""
    landmarks: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self):
        return {
            "name": self.name,
            "description": self.description,
            "geometry": {"landmarks": list(self.landmarks)}
        }

    @classmethod
    def from_dict(cls, data: dict):
        data = _section(data, "phantom_definition")
        geometry = _section(data.get("geometry"), "phantom_definition.geometry")
        return cls(
            name=data.get("name", "phantom"),
            description=data.get("description", ""),
            landmarks=list(_section(geometry.get("landmarks"),
                                    "phantom_definition.geometry.landmarks", list))
        )


@dataclass
class RegistrationConfig:
    """Registration algorithm settings."""

    # Second/largest singular value ratio below which landmarks count as collinear
    # (the cross-covariance is held to the square of this ratio)
    degeneracy_tolerance: float = 1e-6

    # Acceptance threshold for the mean landmark error (same units as positions, mm)
    max_registration_error: float = 2.0

    # Where the application writes the registration result, if anywhere
    output_file: Optional[str] = None

    def to_dict(self):
        return {
            "degeneracy_tolerance": self.degeneracy_tolerance,
            "max_registration_error": self.max_registration_error,
            "output_file": self.output_file
        }

    @classmethod
    def from_dict(cls, data: dict):
        data = _section(data, "registration")
        return cls(
            degeneracy_tolerance=data.get("degeneracy_tolerance", 1e-6),
            max_registration_error=data.get("max_registration_error", 2.0),
            output_file=data.get("output_file")
        )


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    # Component configurations
    phantom_definition: PhantomDefinitionConfig = field(default_factory=PhantomDefinitionConfig)
    registration: RegistrationConfig = field(default_factory=RegistrationConfig)

    # Logging
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    log_to_file: bool = False

    # Debug settings
    debug_mode: bool = False
    verbose_logging: bool = False

    def to_dict(self):
        return {
            "phantom_definition": self.phantom_definition.to_dict(),
            "registration": self.registration.to_dict(),
            "log_dir": str(self.log_dir),
            "log_to_file": self.log_to_file,
            "debug_mode": self.debug_mode,
            "verbose_logging": self.verbose_logging
        }

    @classmethod
    def from_dict(cls, data: dict):
        data = _section(data, "configuration document")
        return cls(
            phantom_definition=PhantomDefinitionConfig.from_dict(data.get("phantom_definition")),
            registration=RegistrationConfig.from_dict(data.get("registration")),
            log_dir=Path(data.get("log_dir", "logs")),
            log_to_file=data.get("log_to_file", False),
            debug_mode=data.get("debug_mode", False),
            verbose_logging=data.get("verbose_logging", False)
        )
