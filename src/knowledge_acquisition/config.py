"""Configuration system using platformdirs for cross-platform paths."""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import platformdirs

from .plans.models import PlannerOptions, PlanType
from .tokens import DEFAULT_ENCODING

APP_NAME = "knowledge-acquisition"
ENV_PREFIX = "KNOWLEDGE_ACQUISITION_"


@dataclass
class Config:
	"""Central configuration with XDG/platform conventions."""

	config_dir: Path = field(default_factory=lambda: Path(platformdirs.user_config_dir(APP_NAME)))
	data_dir: Path = field(default_factory=lambda: Path(platformdirs.user_data_dir(APP_NAME)))

	# Derived paths
	config_file: Path = field(init=False)
	log_dir: Path = field(init=False)

	# User-configurable
	token_limit: int = 1024
	token_encoding: str = DEFAULT_ENCODING
	log_level: str = "INFO"
	planner: PlannerOptions = field(default_factory=PlannerOptions)

	def __post_init__(self) -> None:
		self.config_file = self.config_dir / "config.toml"
		self.log_dir = self.data_dir / "logs"

	def ensure_dirs(self) -> None:
		"""Create all required directories."""
		self.config_dir.mkdir(parents=True, exist_ok=True)
		self.data_dir.mkdir(parents=True, exist_ok=True)
		self.log_dir.mkdir(parents=True, exist_ok=True)


def _apply_env_overrides(config: Config) -> Config:
	"""Apply KNOWLEDGE_ACQUISITION_* environment variable overrides."""
	path_map = {
		f"{ENV_PREFIX}CONFIG_DIR": "config_dir",
		f"{ENV_PREFIX}DATA_DIR": "data_dir",
	}
	for env_key, attr in path_map.items():
		val = os.getenv(env_key)
		if val:
			setattr(config, attr, Path(val))

	token_limit = os.getenv(f"{ENV_PREFIX}TOKEN_LIMIT")
	if token_limit:
		config.token_limit = int(token_limit)
	encoding = os.getenv(f"{ENV_PREFIX}TOKEN_ENCODING")
	if encoding:
		config.token_encoding = encoding
	log_level = os.getenv(f"{ENV_PREFIX}LOG_LEVEL")
	if log_level:
		config.log_level = log_level.upper()
	plan_type = os.getenv(f"{ENV_PREFIX}PLAN_TYPE")
	if plan_type:
		config.planner = config.planner.model_copy(update={"type": PlanType(plan_type)})

	# Recompute derived paths after overrides
	config.__post_init__()
	return config


def _apply_toml(config: Config) -> Config:
	"""Apply config.toml overrides if file exists."""
	toml_path = config.config_dir / "config.toml"
	if not toml_path.exists():
		return config

	with open(toml_path, "rb") as f:
		data = tomllib.load(f)

	path_fields = {"config_dir", "data_dir"}
	for key, val in data.items():
		if key == "planner":
			config.planner = PlannerOptions.model_validate(val)
		elif hasattr(config, key):
			if key in path_fields:
				setattr(config, key, Path(os.path.expanduser(val)))
			else:
				setattr(config, key, val)

	# Recompute derived paths after toml overrides
	config.__post_init__()
	return config


def load_config() -> Config:
	"""Load config with precedence: env vars > config.toml > defaults."""
	config = Config()
	config = _apply_env_overrides(config)  # locate config.toml
	config = _apply_toml(config)
	config = _apply_env_overrides(config)
	config.ensure_dirs()
	return config
