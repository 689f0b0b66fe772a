"""Configuration loader: environment variables, optional YAML file, CLI overrides."""

import copy
import os
import re
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

import yaml

from .models import DocumentStatus


# Environment variable -> dotted config path.
ENV_VARIABLES = {
    'EXPORT_VENDOR': 'vendor.name',
    'VENDOR_BASE_URL': 'vendor.base_url',
    'VENDOR_API_KEY': 'vendor.api_key',
    'VENDOR_API_TOKEN': 'vendor.api_token',
    'VENDOR_CLIENT_ID': 'vendor.client_id',
    'VENDOR_CLIENT_SECRET': 'vendor.client_secret',
    'VENDOR_TOKEN_URL': 'vendor.token_url',
    'VENDOR_SCOPE': 'vendor.scope',
    'EXPORT_OUTPUT_DIR': 'export.output_directory',
    'EXPORT_OWNER': 'export.owner',
    'EXPORT_STATUS': 'export.status',
    'EXPORT_PAGE_SIZE': 'export.page_size',
    'EXPORT_REQUEST_DELAY': 'advanced.request_delay',
    'EXPORT_REQUEST_TIMEOUT': 'advanced.request_timeout',
    'EXPORT_RATE_LIMIT_RETRIES': 'advanced.rate_limit_retries',
    'EXPORT_LOG_LEVEL': 'logging.level',
    'EXPORT_LOG_FILE': 'logging.file'
}

_NUMERIC_PATHS = {
    'export.page_size': int,
    'advanced.request_delay': float,
    'advanced.request_timeout': float,
    'advanced.rate_limit_retries': int
}

DEFAULT_CONFIG: Dict[str, Any] = {
    'vendor': {},
    'export': {
        'output_directory': './export',
        'owner': 'msp-team',
        'status': DocumentStatus.PUBLISHED.value,
        'dry_run': False,
        'organizations': []
    },
    'advanced': {
        'request_delay': 0.5,
        'request_timeout': 30,
        'rate_limit_retries': 0,
        'verify_ssl': True
    },
    'logging': {}
}


class ConfigLoader:
    """Handles loading and validation of exporter configuration."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a YAML file with ``${VAR}`` substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        return cls._substitute_env_vars_recursive(config_data)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        base: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Build configuration from environment variables.

        Values already present in ``base`` (e.g. from a config file) win over
        the environment; defaults fill whatever is still missing.

        Args:
            environ: Mapping to read instead of ``os.environ``
            base: Partially populated configuration

        Returns:
            Complete configuration dictionary
        """
        environ = os.environ if environ is None else environ
        config = copy.deepcopy(base) if base else {}

        for env_name, path in ENV_VARIABLES.items():
            value = environ.get(env_name)
            if value is None or value == '':
                continue
            if get_nested(config, path) not in (None, ''):
                continue
            converter = _NUMERIC_PATHS.get(path)
            if converter:
                try:
                    value = converter(value)
                except ValueError:
                    raise ValueError(f"Environment variable {env_name} must be numeric, got '{value}'")
            set_nested(config, path, value)

        return _merge_defaults(config, DEFAULT_CONFIG)

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Raises:
            ValueError: If validation fails
        """
        cls._validate_required_field(config, 'vendor.name')

        base_url = get_nested(config, 'vendor.base_url')
        if base_url:
            cls._validate_url(base_url, 'vendor.base_url')

        token_url = get_nested(config, 'vendor.token_url')
        if token_url:
            cls._validate_url(token_url, 'vendor.token_url')

        credentials = [
            get_nested(config, 'vendor.api_key'),
            get_nested(config, 'vendor.api_token'),
            get_nested(config, 'vendor.client_id')
        ]
        if not any(credentials):
            raise ValueError(
                "Missing vendor credentials: set vendor.api_key, vendor.api_token "
                "or vendor.client_id/vendor.client_secret"
            )
        for field in ('vendor.api_key', 'vendor.api_token', 'vendor.client_id', 'vendor.client_secret'):
            value = get_nested(config, field)
            if value:
                cls._validate_required_field(config, field)

        cls._validate_required_field(config, 'export.output_directory')
        output_dir = get_nested(config, 'export.output_directory')
        if os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ValueError(f"export.output_directory '{output_dir}' is not a directory")

        status = get_nested(config, 'export.status', DocumentStatus.PUBLISHED.value)
        try:
            DocumentStatus(status)
        except ValueError:
            raise ValueError(
                f"export.status must be one of: {[s.value for s in DocumentStatus]}"
            )

        page_size = get_nested(config, 'export.page_size')
        if page_size is not None and (not isinstance(page_size, int) or page_size < 1):
            raise ValueError("export.page_size must be a positive integer")

        delay = get_nested(config, 'advanced.request_delay', 0.5)
        if not isinstance(delay, (int, float)) or delay < 0:
            raise ValueError("advanced.request_delay must be a non-negative number")

        timeout = get_nested(config, 'advanced.request_timeout', 30)
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("advanced.request_timeout must be a positive number")

        retries = get_nested(config, 'advanced.rate_limit_retries', 0)
        if not isinstance(retries, int) or retries < 0:
            raise ValueError("advanced.rate_limit_retries must be a non-negative integer")

        organizations = get_nested(config, 'export.organizations', [])
        if not isinstance(organizations, list):
            raise ValueError("export.organizations must be a list")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration with CLI arguments. CLI arguments take precedence.

        Args:
            config: Base configuration dictionary
            args: argparse namespace

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)
        for section in ('vendor', 'export', 'logging'):
            merged.setdefault(section, {})

        if getattr(args, 'vendor', None):
            merged['vendor']['name'] = args.vendor

        if getattr(args, 'output_dir', None):
            merged['export']['output_directory'] = args.output_dir

        if getattr(args, 'organization', None):
            merged['export']['organizations'] = list(args.organization)

        if getattr(args, 'dry_run', None) is not None:
            merged['export']['dry_run'] = args.dry_run

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            env_value = os.getenv(match.group(1))
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        """Validate URL format."""
        parsed = urlparse(url)
        if not parsed.scheme or parsed.scheme not in ['http', 'https']:
            raise ValueError(f"{field_name} must use http or https scheme: {url}")
        if not parsed.netloc:
            raise ValueError(f"{field_name} missing hostname: {url}")


def get_nested(config: Any, path: str, default: Any = None) -> Any:
    """Safely retrieve nested values using dot notation.

    An exact key match wins over splitting, so keys that themselves
    contain dots still resolve.

    Args:
        config: Dictionary to search
        path: Dot-separated path (e.g., "vendor.base_url")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    if isinstance(config, dict) and path in config:
        return config[path]

    value = config
    for key in path.split('.'):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


def set_nested(config: dict, path: str, value: Any) -> None:
    """Set a value at a dotted path, creating intermediate dictionaries."""
    keys = path.split('.')
    target = config
    for key in keys[:-1]:
        if not isinstance(target.get(key), dict):
            target[key] = {}
        target = target[key]
    target[keys[-1]] = value


def _merge_defaults(config: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_defaults(value, merged[key])
        elif value is not None:
            merged[key] = value
    return merged


__all__ = ['ConfigLoader', 'get_nested', 'set_nested', 'ENV_VARIABLES', 'DEFAULT_CONFIG']
