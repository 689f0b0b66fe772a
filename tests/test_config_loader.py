import argparse
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from msp_doc_exporter.config_loader import ConfigLoader, get_nested, set_nested
from msp_doc_exporter.logger import sanitize_config


def valid_config(**overrides):
    config = {
        'vendor': {'name': 'atera', 'api_key': 'key-123'},
        'export': {'output_directory': './export', 'status': 'published'},
        'advanced': {'request_delay': 0.5, 'request_timeout': 30, 'rate_limit_retries': 0}
    }
    for path, value in overrides.items():
        set_nested(config, path.replace('__', '.'), value)
    return config


class TestConfigLoader(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write_config(self, text):
        path = os.path.join(self.temp_dir, 'config.yaml')
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text)
        return path

    def test_from_env_reads_spec_variables(self):
        environ = {
            'EXPORT_VENDOR': 'ninjaone',
            'VENDOR_CLIENT_ID': 'cid',
            'VENDOR_CLIENT_SECRET': 'csecret',
            'EXPORT_OUTPUT_DIR': '/tmp/out',
            'EXPORT_OWNER': 'noc',
            'EXPORT_REQUEST_DELAY': '1.5'
        }
        config = ConfigLoader.from_env(environ)

        self.assertEqual(config['vendor']['name'], 'ninjaone')
        self.assertEqual(config['vendor']['client_secret'], 'csecret')
        self.assertEqual(config['export']['output_directory'], '/tmp/out')
        self.assertEqual(config['export']['owner'], 'noc')
        self.assertEqual(config['advanced']['request_delay'], 1.5)
        self.assertEqual(config['advanced']['request_timeout'], 30)
        self.assertFalse(config['export']['dry_run'])

    def test_from_env_defaults(self):
        config = ConfigLoader.from_env({})
        self.assertEqual(config['export']['output_directory'], './export')
        self.assertEqual(config['export']['owner'], 'msp-team')
        self.assertEqual(config['advanced']['request_delay'], 0.5)

    def test_file_values_win_over_environment(self):
        base = {'vendor': {'name': 'itglue'}}
        config = ConfigLoader.from_env({'EXPORT_VENDOR': 'atera', 'VENDOR_API_KEY': 'k'}, base=base)
        self.assertEqual(config['vendor']['name'], 'itglue')
        self.assertEqual(config['vendor']['api_key'], 'k')

    def test_non_numeric_delay_rejected(self):
        with self.assertRaises(ValueError):
            ConfigLoader.from_env({'EXPORT_REQUEST_DELAY': 'soon'})

    def test_load_substitutes_environment_variables(self):
        path = self.write_config(
            "vendor:\n"
            "  name: itboost\n"
            "  api_token: ${ITBOOST_TOKEN}\n"
            "export:\n"
            "  organizations: [Acme]\n"
        )
        with patch.dict(os.environ, {'ITBOOST_TOKEN': 'tok-9'}):
            config = ConfigLoader.load(path)

        self.assertEqual(config['vendor']['api_token'], 'tok-9')
        self.assertEqual(config['export']['organizations'], ['Acme'])

    def test_load_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            ConfigLoader.load(os.path.join(self.temp_dir, 'absent.yaml'))

    def test_load_rejects_non_mapping(self):
        with self.assertRaises(ValueError):
            ConfigLoader.load(self.write_config("- just\n- a list\n"))

    def test_validate_accepts_valid_config(self):
        ConfigLoader.validate(valid_config())

    def test_validate_requires_vendor(self):
        config = valid_config()
        del config['vendor']['name']
        with self.assertRaises(ValueError):
            ConfigLoader.validate(config)

    def test_validate_requires_credentials(self):
        config = valid_config()
        del config['vendor']['api_key']
        with self.assertRaisesRegex(ValueError, 'credentials'):
            ConfigLoader.validate(config)

    def test_validate_rejects_bad_values(self):
        bad = [
            {'vendor__base_url': 'ftp://example.com'},
            {'export__status': 'archived'},
            {'advanced__request_delay': -1},
            {'advanced__request_timeout': 0},
            {'advanced__rate_limit_retries': -2},
            {'export__page_size': 0},
            {'export__organizations': 'Acme'}
        ]
        for overrides in bad:
            with self.assertRaises(ValueError, msg=overrides):
                ConfigLoader.validate(valid_config(**overrides))

    def test_merge_with_args(self):
        args = argparse.Namespace(
            vendor='itglue', output_dir='/srv/docs', organization=['Acme', '12'],
            dry_run=True, log_file=None
        )
        merged = ConfigLoader.merge_with_args(valid_config(), args)

        self.assertEqual(merged['vendor']['name'], 'itglue')
        self.assertEqual(merged['export']['output_directory'], '/srv/docs')
        self.assertEqual(merged['export']['organizations'], ['Acme', '12'])
        self.assertTrue(merged['export']['dry_run'])

    def test_merge_with_args_keeps_config_when_flags_absent(self):
        config = valid_config(export__dry_run=True)
        args = argparse.Namespace(vendor=None, output_dir=None, organization=None, dry_run=None, log_file=None)
        merged = ConfigLoader.merge_with_args(config, args)
        self.assertTrue(merged['export']['dry_run'])
        self.assertEqual(merged['vendor']['name'], 'atera')

    def test_get_nested(self):
        config = {'vendor': {'endpoints': {'devices': 'agents'}}, 'a.b': 1}
        self.assertEqual(get_nested(config, 'vendor.endpoints.devices'), 'agents')
        self.assertEqual(get_nested(config, 'a.b'), 1)
        self.assertEqual(get_nested(config, 'vendor.missing', 'dflt'), 'dflt')

    def test_sanitize_config_redacts_secrets(self):
        config = valid_config(vendor__client_secret='s3cret')
        sanitized = sanitize_config(config)
        self.assertEqual(sanitized['vendor']['api_key'], '***REDACTED***')
        self.assertEqual(sanitized['vendor']['client_secret'], '***REDACTED***')
        self.assertEqual(sanitized['vendor']['name'], 'atera')
        self.assertEqual(config['vendor']['api_key'], 'key-123')


if __name__ == '__main__':
    unittest.main()
