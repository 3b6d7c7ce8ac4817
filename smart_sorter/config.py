"""YAML configuration and rule persistence."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import yaml

from .errors import ConfigurationError, RuleValidationError
from .fileops import FILE_STABILITY_DELAY
from .rules import RuleStore, SortingRule

logger = logging.getLogger(__name__)

CONFIG_FILE = "rules.yml"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """Application configuration."""
    rules: RuleStore = field(default_factory=RuleStore)
    source_folder: Optional[Path] = None
    sort_by_name: bool = True
    log_level: str = "INFO"
    settle_delay: float = FILE_STABILITY_DELAY

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not isinstance(self.rules, RuleStore):
            self.rules = RuleStore(self.rules)

        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log_level '{self.log_level}'")

        if self.settle_delay < 0:
            raise ConfigurationError("settle_delay cannot be negative")

    def to_dict(self) -> dict:
        data = {}
        if self.source_folder is not None:
            data['source_folder'] = str(self.source_folder)
        data['sort_by_name'] = self.sort_by_name
        data['log_level'] = self.log_level
        data['settle_delay'] = self.settle_delay
        data['rules'] = [
            {
                'extension': rule.extension,
                'folder': rule.target_folder,
                'description': rule.description,
            }
            for rule in self.rules
        ]
        return data


# --- Configuration Loader ---

def load_config(config_path: Union[str, Path] = CONFIG_FILE, allow_missing: bool = False) -> Config:
    """Loads and validates configuration from YAML file."""
    config_path_obj = Path(config_path)

    try:
        if not config_path_obj.exists():
            if allow_missing:
                logger.info(f"No configuration at '{config_path}', starting with an empty rule set")
                return Config()
            raise ConfigurationError(f"Configuration file not found: '{config_path}'")

        if not config_path_obj.is_file():
            raise ConfigurationError(f"Configuration path is not a file: '{config_path}'")

        with open(config_path_obj, 'r', encoding='utf-8') as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            raw_config = {}

        if not isinstance(raw_config, dict):
            raise ConfigurationError(f"Configuration root must be a dictionary, got {type(raw_config)}")

        source_folder = raw_config.get('source_folder')
        if source_folder is not None:
            source_folder = _expand_path(source_folder, "source_folder")

        rules = _parse_sorting_rules(raw_config.get('rules') or [])

        config = Config(
            rules=RuleStore(rules),
            source_folder=source_folder,
            sort_by_name=bool(raw_config.get('sort_by_name', True)),
            log_level=raw_config.get('log_level', "INFO"),
            settle_delay=float(raw_config.get('settle_delay', FILE_STABILITY_DELAY)),
        )
        logger.info(f"Successfully loaded configuration: {len(rules)} rules from '{config_path}'")
        return config

    except ConfigurationError:
        raise
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in '{config_path}': {e}")
    except (IOError, OSError) as e:
        raise ConfigurationError(f"Error reading configuration file '{config_path}': {e}")
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value in configuration '{config_path}': {e}")


def save_config(config: Config, config_path: Union[str, Path] = CONFIG_FILE) -> None:
    """Writes the configuration, rules included, back to YAML."""
    try:
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config.to_dict(), f, allow_unicode=True, sort_keys=False)
        logger.debug(f"Saved {len(config.rules)} rules to '{config_path}'")
    except (IOError, OSError) as e:
        raise ConfigurationError(f"Error writing configuration file '{config_path}': {e}")


def _expand_path(path_str: str, field_name: str) -> Path:
    """Expand user path."""
    if not str(path_str).strip():
        raise ConfigurationError(f"{field_name} cannot be empty")
    return Path(str(path_str)).expanduser()


def _parse_sorting_rules(raw_rules: list) -> List[SortingRule]:
    """Parse and validate sorting rules from configuration."""
    if not isinstance(raw_rules, list):
        raise ConfigurationError("Rules must be a list")

    rules = []
    for i, rule_data in enumerate(raw_rules):
        if not isinstance(rule_data, dict):
            raise ConfigurationError(f"Rule {i+1} must be a dictionary")

        if 'extension' not in rule_data:
            raise ConfigurationError(f"Rule {i+1} missing required 'extension' field")

        if 'folder' not in rule_data:
            raise ConfigurationError(f"Rule {i+1} missing required 'folder' field")

        try:
            rule = SortingRule(
                extension=str(rule_data['extension']),
                target_folder=str(rule_data['folder'] or ""),
                description=str(rule_data.get('description') or ""),
            )
        except RuleValidationError as e:
            raise ConfigurationError(f"Rule {i+1}: {e}")

        rules.append(rule)
        logger.debug(f"Parsed rule: .{rule.extension} → {rule.target_folder}")

    return rules
