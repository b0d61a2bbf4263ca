import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")


@dataclass
class ElectionConfig:
    owner: str = "owner"
    votes: List[int] = field(default_factory=lambda: [1, 0, 1, 1, 0])
    voter_prefix: str = "voter"
    max_workers: int = 4

    def __post_init__(self):
        for vote in self.votes:
            if isinstance(vote, bool) or vote not in (0, 1):
                raise ValueError(f"Votes must be 0 or 1, got {vote!r}")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    def voter_ids(self) -> List[str]:
        return [f"{self.voter_prefix}_{i}" for i in range(len(self.votes))]


@dataclass
class SystemConfig:
    election: ElectionConfig = field(default_factory=ElectionConfig)

    log_level: str = "INFO"
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    results_dir: Path = field(default_factory=lambda: Path("results"))
    vectors_file: Path = field(
        default_factory=lambda: Path("results/reference_vectors.json"))
    enable_benchmarking: bool = True
    enable_debug_mode: bool = False

    def __post_init__(self):
        self.log_dir = Path(self.log_dir)
        self.results_dir = Path(self.results_dir)
        self.vectors_file = Path(self.vectors_file)
        if self.enable_debug_mode:
            self.log_level = "DEBUG"

    def ensure_directories(self):
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.results_dir.mkdir(parents=True, exist_ok=True)
        self.vectors_file.parent.mkdir(parents=True, exist_ok=True)


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """Load configuration from file or return default"""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if not config_path.exists():
        return SystemConfig()

    try:
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
        return _build_config(config_data)
    except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
        logger.warning(f"Could not load config file {config_path}: {e}")
        logger.warning("Using default configuration")
        return SystemConfig()


def _build_config(config_data) -> SystemConfig:
    if not isinstance(config_data, dict):
        raise TypeError("top level must be a mapping")

    election_data = config_data.get('election', {}) or {}
    if not isinstance(election_data, dict):
        raise TypeError("'election' must be a mapping")

    election = ElectionConfig(
        owner=election_data.get('owner', 'owner'),
        votes=list(election_data.get('votes', [1, 0, 1, 1, 0])),
        voter_prefix=election_data.get('voter_prefix', 'voter'),
        max_workers=election_data.get('max_workers', 4)
    )

    return SystemConfig(
        election=election,
        log_level=config_data.get('log_level', 'INFO'),
        log_dir=Path(config_data.get('log_dir', 'logs')),
        results_dir=Path(config_data.get('results_dir', 'results')),
        vectors_file=Path(config_data.get(
            'vectors_file', 'results/reference_vectors.json')),
        enable_benchmarking=config_data.get('enable_benchmarking', True),
        enable_debug_mode=config_data.get('enable_debug_mode', False)
    )


def save_config(config: SystemConfig, config_path: Optional[Path] = None):
    """Save configuration to YAML file"""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    config_data = {
        'election': {
            'owner': config.election.owner,
            'votes': list(config.election.votes),
            'voter_prefix': config.election.voter_prefix,
            'max_workers': config.election.max_workers
        },
        'log_level': config.log_level,
        'log_dir': str(config.log_dir),
        'results_dir': str(config.results_dir),
        'vectors_file': str(config.vectors_file),
        'enable_benchmarking': config.enable_benchmarking,
        'enable_debug_mode': config.enable_debug_mode
    }

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w') as f:
        yaml.dump(config_data, f, default_flow_style=False)

    logger.info(f"Configuration saved to {config_path}")
