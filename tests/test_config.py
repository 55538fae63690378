"""Unit tests for configuration management."""

import unittest
import tempfile
from pathlib import Path
from unittest import mock
import yaml
import json
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from config.settings import (
    PhantomDefinitionConfig, RegistrationConfig, ApplicationConfig
)
from config.loader import ConfigLoader


class TestPhantomDefinitionConfig(unittest.TestCase):
    """Test PhantomDefinitionConfig class."""

    def test_keeps_entries_unvalidated(self):
        """Malformed landmark entries survive until registration reads them."""
        data = {"geometry": {"landmarks": [{"name": "a", "position": [0, 0]}, "junk"]}}
        config = PhantomDefinitionConfig.from_dict(data)
        self.assertEqual(len(config.landmarks), 2)

    def test_to_dict_nests_geometry(self):
        config = PhantomDefinitionConfig(name="fCal")
        d = config.to_dict()
        self.assertEqual(d["name"], "fCal")
        self.assertEqual(d["geometry"], {"landmarks": []})

    def test_rejects_non_mapping_definition(self):
        with self.assertRaises(ValueError):
            PhantomDefinitionConfig.from_dict("fCal")

    def test_rejects_non_mapping_geometry(self):
        with self.assertRaises(ValueError):
            PhantomDefinitionConfig.from_dict({"geometry": [1, 2]})

    def test_rejects_non_list_landmarks(self):
        with self.assertRaises(ValueError):
            PhantomDefinitionConfig.from_dict({"geometry": {"landmarks": "none"}})


class TestRegistrationConfig(unittest.TestCase):
    """Test RegistrationConfig class."""

    def test_default_values(self):
        config = RegistrationConfig()
        self.assertEqual(config.degeneracy_tolerance, 1e-6)
        self.assertEqual(config.max_registration_error, 2.0)
        self.assertIsNone(config.output_file)

    def test_from_dict(self):
        config = RegistrationConfig.from_dict({"max_registration_error": 0.75})
        self.assertEqual(config.max_registration_error, 0.75)
        self.assertEqual(config.degeneracy_tolerance, 1e-6)

    def test_rejects_non_mapping_section(self):
        with self.assertRaises(ValueError):
            RegistrationConfig.from_dict([0.5])


class TestConfigLoader(unittest.TestCase):
    """Test ConfigLoader class."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.temp_path = Path(self.temp_dir.name)
        self.loader = ConfigLoader(self.temp_path)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_load_yaml(self):
        """Test loading YAML configuration."""
        yaml_file = self.temp_path / "test.yaml"
        config_data = {
            "registration": {"max_registration_error": 1.5},
            "phantom_definition": {
                "name": "test",
                "geometry": {"landmarks": [{"name": "a", "position": [1, 2, 3]}]}
            }
        }
        with open(yaml_file, 'w') as f:
            yaml.dump(config_data, f)

        config = self.loader.load(yaml_file)
        self.assertEqual(config.registration.max_registration_error, 1.5)
        self.assertEqual(config.phantom_definition.name, "test")
        self.assertEqual(len(config.phantom_definition.landmarks), 1)

    def test_load_json(self):
        """Test loading JSON configuration."""
        json_file = self.temp_path / "test.json"
        with open(json_file, 'w') as f:
            json.dump({"debug_mode": True, "log_dir": "somewhere"}, f)

        config = self.loader.load(json_file)
        self.assertTrue(config.debug_mode)
        self.assertEqual(config.log_dir, Path("somewhere"))

    def test_load_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            self.loader.load(self.temp_path / "missing.yaml")

    def test_load_unsupported_format(self):
        ini_file = self.temp_path / "test.ini"
        ini_file.write_text("[section]\n")
        with self.assertRaises(ValueError):
            self.loader.load(ini_file)

    def test_load_non_mapping_document(self):
        yaml_file = self.temp_path / "list.yaml"
        yaml_file.write_text("- 1\n- 2\n")
        with self.assertRaises(ValueError):
            self.loader.load(yaml_file)

    def test_load_invalid_yaml(self):
        yaml_file = self.temp_path / "broken.yaml"
        yaml_file.write_text("registration: [unclosed\n")
        with self.assertRaises(ValueError):
            self.loader.load(yaml_file)

    def test_load_defaults(self):
        """Default files in the config directory are merged."""
        with open(self.temp_path / "registration.yaml", 'w') as f:
            yaml.dump({"registration": {"max_registration_error": 3.0}}, f)
        with open(self.temp_path / "application.yaml", 'w') as f:
            yaml.dump({"verbose_logging": True}, f)

        config = self.loader.load()
        self.assertEqual(config.registration.max_registration_error, 3.0)
        self.assertTrue(config.verbose_logging)

    def test_packaged_defaults(self):
        """The shipped phantom definition loads and validates."""
        loader = ConfigLoader()
        config = loader.load()
        self.assertEqual(len(config.phantom_definition.landmarks), 8)
        self.assertTrue(loader.validate(config))

    def test_env_override(self):
        """PHANTOM_ variables override nested values."""
        env = {"PHANTOM_REGISTRATION__MAX_REGISTRATION_ERROR": "0.25",
               "PHANTOM_DEBUG_MODE": "true"}
        with mock.patch.dict(os.environ, env):
            config = self.loader.load()
        self.assertEqual(config.registration.max_registration_error, 0.25)
        self.assertTrue(config.debug_mode)

    def test_save_yaml(self):
        """Test saving YAML configuration."""
        config = ApplicationConfig()
        config.phantom_definition.landmarks.append({"name": "a", "position": [1.0, 2.0, 3.0]})

        yaml_file = self.temp_path / "save_test.yaml"
        self.loader.save(config, yaml_file)

        self.assertTrue(yaml_file.exists())
        with open(yaml_file, 'r') as f:
            data = yaml.safe_load(f)
        landmarks = data["phantom_definition"]["geometry"]["landmarks"]
        self.assertEqual(landmarks[0]["position"], [1.0, 2.0, 3.0])

    def test_save_unsupported_format(self):
        with self.assertRaises(ValueError):
            self.loader.save(ApplicationConfig(), self.temp_path / "config.txt")

    def test_validation(self):
        """Test configuration validation."""
        config = ApplicationConfig()
        self.assertTrue(self.loader.validate(config))

        config.registration.degeneracy_tolerance = 0.0
        self.assertFalse(self.loader.validate(config))

        config.registration.degeneracy_tolerance = 1e-6
        config.registration.max_registration_error = -1.0
        self.assertFalse(self.loader.validate(config))

        config.registration.max_registration_error = "large"
        self.assertFalse(self.loader.validate(config))

    def test_validate_without_config(self):
        self.assertFalse(self.loader.validate())

    def test_reload(self):
        yaml_file = self.temp_path / "reload.yaml"
        with open(yaml_file, 'w') as f:
            yaml.dump({"debug_mode": False}, f)
        self.loader.load(yaml_file)

        with open(yaml_file, 'w') as f:
            yaml.dump({"debug_mode": True}, f)
        self.assertTrue(self.loader.reload().debug_mode)


class TestApplicationConfig(unittest.TestCase):
    """Test ApplicationConfig class."""

    def test_rejects_non_mapping_document(self):
        with self.assertRaises(ValueError):
            ApplicationConfig.from_dict(["phantom_definition"])

    def test_complete_config(self):
        """Test complete application configuration."""
        config = ApplicationConfig()
        self.assertIsNotNone(config.phantom_definition)
        self.assertIsNotNone(config.registration)
        self.assertFalse(config.debug_mode)
        self.assertFalse(config.log_to_file)

    def test_roundtrip(self):
        """Test configuration roundtrip (to_dict and from_dict)."""
        config1 = ApplicationConfig()
        config1.registration.max_registration_error = 1.23
        config1.phantom_definition.landmarks.append({"name": "a", "position": [1.0, 2.0, 3.0]})
        config1.debug_mode = True

        config2 = ApplicationConfig.from_dict(config1.to_dict())

        self.assertEqual(config2.registration.max_registration_error, 1.23)
        self.assertEqual(config2.phantom_definition.landmarks, config1.phantom_definition.landmarks)
        self.assertTrue(config2.debug_mode)


if __name__ == '__main__':
    unittest.main()
