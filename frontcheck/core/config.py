"""
Configuration Manager
Loads optional JSON configuration and merges it over the built-in defaults.
"""

import copy
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional

AWS_IP_RANGES_URL = 'https://ip-ranges.amazonaws.com/ip-ranges.json'


def overlay(defaults: Dict, user: Dict) -> Dict:
    """
    Layer the user's sections over a fresh copy of `defaults`.
    Nested sections combine key by key; any other value from the user wins.
    """
    merged = copy.deepcopy(defaults)
    for key, value in user.items():
        section = merged.get(key)
        if isinstance(section, dict) and isinstance(value, dict):
            merged[key] = overlay(section, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ConfigManager:
    """Manages configuration"""

    DEFAULTS = {
        'scan': {
            'concurrency': 20,
            'verbose': False,
            'timeout': 10
        },
        'provider': {
            'ranges_url': AWS_IP_RANGES_URL,
            'ranges_file': None,
            'services': [],
            'timeout': 30
        },
        'probe': {
            'signature': 'Bad request',
            'forbidden_status': 403,
            'user_agent': None,
            'verify_tls': True
        },
        'dns': {
            'nameservers': None,
            'record_types': ['A', 'AAAA']
        }
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to config.json (optional, uses defaults if not provided)
        """
        self.config_file = Path(config_file) if config_file else None
        self.config = self._load_config()

    def _load_config(self) -> Dict:
        """Load configuration, merging with defaults"""
        if self.config_file is None:
            return copy.deepcopy(self.DEFAULTS)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_file}")

        # Try different encodings (handles Windows BOM issues)
        user_config = None
        for encoding in ['utf-8-sig', 'utf-8', 'utf-16', 'latin-1']:
            try:
                with open(self.config_file, 'r', encoding=encoding) as f:
                    user_config = json.load(f)
                break
            except (UnicodeDecodeError, UnicodeError):
                continue
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in config file: {e}")

        if not isinstance(user_config, dict):
            raise ValueError(f"Could not decode config file: {self.config_file}")

        return overlay(self.DEFAULTS, user_config)

    def get(self, *keys, default: Any = None) -> Any:
        """Walk `keys` into the config ('probe', 'signature'); `default` when any step is missing"""
        node = self.config
        for key in keys:
            try:
                node = node[key]
            except (KeyError, IndexError, TypeError):
                return default
        return node

    def set(self, *keys, value: Any):
        """Override a nested value, typically from a command line flag"""
        node = self.config
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        node[keys[-1]] = value

    def run_config(self) -> 'RunConfig':
        """Freeze the scan section into the immutable run configuration"""
        return RunConfig.from_values(
            concurrency=self.get('scan', 'concurrency', default=20),
            verbose=self.get('scan', 'verbose', default=False),
            timeout=self.get('scan', 'timeout', default=10)
        )

    def save_template(self, output_path: str):
        """Save default configuration as template"""
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)

        with open(output, 'w', encoding='utf-8') as f:
            json.dump(self.DEFAULTS, f, indent=2)

        print(f"[CONFIG] Template saved: {output}", file=sys.stderr)


@dataclass(frozen=True)
class RunConfig:
    """Worker count, verbosity and per-call timeout; fixed for the whole run"""
    concurrency: int = 20
    verbose: bool = False
    timeout: Optional[float] = 10

    @classmethod
    def from_values(cls, concurrency: Any, verbose: Any, timeout: Any) -> 'RunConfig':
        try:
            concurrency = int(concurrency)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid concurrency: {concurrency!r}")
        if concurrency < 1:
            raise ValueError(f"Concurrency must be at least 1, got {concurrency}")

        # 0 or null means no timeout at all
        if timeout in (None, 0, '0'):
            timeout = None
        else:
            try:
                timeout = float(timeout)
            except (TypeError, ValueError):
                raise ValueError(f"Invalid timeout: {timeout!r}")
            if timeout < 0:
                raise ValueError(f"Timeout cannot be negative, got {timeout}")

        return cls(concurrency=concurrency, verbose=bool(verbose), timeout=timeout)
