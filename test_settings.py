#!/usr/bin/env python3
"""Unit tests for ConvertSettings and its environment loading."""

import os
import tempfile
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from odata_path_lib.context import ODataContext
from odata_path_lib.errors import InvalidArgumentError
from odata_path_lib.models import SchemaModel
from odata_path_lib.settings import ConvertSettings


class TestConvertSettings(unittest.TestCase):
    """Test defaults, immutability and copies."""

    def test_defaults(self):
        """Test default settings values."""
        settings = ConvertSettings()
        self.assertTrue(settings.enable_operation_path)
        self.assertTrue(settings.enable_operation_import_path)
        self.assertTrue(settings.enable_navigation_property_path)
        self.assertEqual(settings.navigation_property_depth, 5)
        self.assertFalse(settings.enable_key_as_segment)
        self.assertEqual(settings.path_prefix, "")
        self.assertFalse(settings.show_metadata_path)

    def test_settings_are_frozen_and_hashable(self):
        """Test that settings are frozen and hashable."""
        settings = ConvertSettings()
        with self.assertRaises(ValidationError):
            settings.enable_key_as_segment = True
        self.assertEqual(hash(settings), hash(ConvertSettings()))

    def test_unknown_fields_are_rejected(self):
        """Test that unknown settings fields are rejected."""
        with self.assertRaises(ValidationError):
            ConvertSettings(enable_everything=True)

    def test_with_changes(self):
        """Test copying settings with changes."""
        settings = ConvertSettings().with_changes(enable_key_as_segment=True)
        self.assertTrue(settings.enable_key_as_segment)
        with self.assertRaises(InvalidArgumentError):
            settings.with_changes(navigation_property_depth="deep")


class TestSettingsFromEnv(unittest.TestCase):
    """Test ODATA_PATHS_* environment variables and .env files."""

    def test_environment_values(self):
        """Test settings read from environment variables."""
        env = {
            'ODATA_PATHS_ENABLE_KEY_AS_SEGMENT': 'true',
            'ODATA_PATHS_NAVIGATION_PROPERTY_DEPTH': '3',
            'ODATA_PATHS_PATH_PREFIX': ' api ',
        }
        with patch.dict(os.environ, env):
            settings = ConvertSettings.from_env(env_file=os.devnull)
        self.assertTrue(settings.enable_key_as_segment)
        self.assertEqual(settings.navigation_property_depth, 3)
        self.assertEqual(settings.path_prefix, "api")

    def test_overrides_win(self):
        """Test that explicit overrides win over the environment."""
        with patch.dict(os.environ, {'ODATA_PATHS_ENABLE_UNQUALIFIED_CALL': 'yes'}):
            settings = ConvertSettings.from_env(env_file=os.devnull, enable_unqualified_call=False)
        self.assertFalse(settings.enable_unqualified_call)

    def test_dotenv_file(self):
        """Test settings read from a .env file."""
        with tempfile.TemporaryDirectory() as tmp:
            env_file = os.path.join(tmp, '.env')
            with open(env_file, 'w') as f:
                f.write("ODATA_PATHS_SHOW_METADATA_PATH=on\n")
            with patch.dict(os.environ, {}):
                os.environ.pop('ODATA_PATHS_SHOW_METADATA_PATH', None)
                settings = ConvertSettings.from_env(env_file=env_file)
        self.assertTrue(settings.show_metadata_path)

    def test_invalid_boolean(self):
        """Test that an invalid boolean value is rejected."""
        with patch.dict(os.environ, {'ODATA_PATHS_ENABLE_OPERATION_PATH': 'maybe'}):
            with self.assertRaises(InvalidArgumentError) as ctx:
                ConvertSettings.from_env(env_file=os.devnull)
        self.assertEqual(ctx.exception.argument, 'enable_operation_path')

    def test_invalid_integer(self):
        """Test that an invalid integer value is rejected."""
        with patch.dict(os.environ, {'ODATA_PATHS_NAVIGATION_PROPERTY_DEPTH': 'deep'}):
            with self.assertRaises(InvalidArgumentError):
                ConvertSettings.from_env(env_file=os.devnull)


class TestContext(unittest.TestCase):
    """Test the per-run context."""

    def test_requires_model(self):
        """Test that a context requires a model."""
        with self.assertRaises(InvalidArgumentError):
            ODataContext(None)

    def test_default_settings(self):
        """Test that a context falls back to default settings."""
        context = ODataContext(SchemaModel())
        self.assertEqual(context.settings, ConvertSettings())
        self.assertEqual(context.bound_operations, {})

    def test_verbose_logging_goes_to_stderr(self):
        """Test that verbose logging writes to stderr."""
        context = ODataContext(SchemaModel(), verbose=True)
        with patch('sys.stderr') as stderr:
            context._log_verbose("walking")
        written = "".join(call.args[0] for call in stderr.write.call_args_list)
        self.assertIn("Provider VERBOSE] walking", written)

        quiet = ODataContext(SchemaModel())
        with patch('sys.stderr') as stderr:
            quiet._log_verbose("walking")
        stderr.write.assert_not_called()


if __name__ == '__main__':
    unittest.main()
