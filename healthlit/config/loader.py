"""Configuration loader with Pydantic validation and env var expansion."""

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "profiles.yaml"
DEFAULT_PROFILE = "default"


def blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class RetryConfig(BaseModel):
    """Retry policy shared by both provider clients."""

    max_attempts: int = Field(3, ge=1)
    base_delay: float = Field(1.0, ge=0)  # Seconds, doubled per attempt
    max_delay: float = Field(10.0, ge=0)
    jitter: float = Field(1.0, ge=0)


class PubMedConfig(BaseModel):
    """Configuration for the PubMed fetcher."""

    api_key: str | None = None
    email: str | None = None
    tool: str | None = None
    requests_per_second: float | None = None  # None: derive from api_key presence
    batch_size: int = Field(20, ge=1)
    batch_delay: float = Field(1.0, ge=0)
    max_results: int = Field(500, ge=1)
    min_year: int = 2018
    max_year: int = 2023

    @field_validator("api_key", "email", "tool", mode="before")
    @classmethod
    def blank_strings_to_none(cls, value):
        return blank_to_none(value)


class SemanticScholarConfig(BaseModel):
    """Configuration for the Semantic Scholar fetcher."""

    api_key: str | None = None
    requests_per_second: float | None = None
    page_size: int = Field(100, ge=1, le=100)
    page_delay: float = Field(2.0, ge=0)
    detail_delay: float = Field(1.0, ge=0)
    year: str = "2018-2023"
    publication_types: list[str] = ["Review", "JournalArticle"]
    fields_of_study: list[str] = ["Medicine"]
    min_citation_count: int | None = 1

    @field_validator("api_key", mode="before")
    @classmethod
    def blank_strings_to_none(cls, value):
        return blank_to_none(value)


class ExportConfig(BaseModel):
    """Configuration for CSV export and local cleanup."""

    output_dir: str = "exports"
    cleanup_delay: float = Field(1.0, ge=0)  # Seconds after upload before deleting the local file


class StorageConfig(BaseModel):
    """Configuration for S3 upload."""

    enabled: bool = True
    bucket: str | None = None
    region: str | None = None

    @field_validator("bucket", "region", mode="before")
    @classmethod
    def blank_strings_to_none(cls, value):
        return blank_to_none(value)


class ProfileConfig(BaseModel):
    """Configuration profile for one pipeline run."""

    pubmed: PubMedConfig = PubMedConfig()
    semantic_scholar: SemanticScholarConfig = SemanticScholarConfig()
    retry: RetryConfig = RetryConfig()
    export: ExportConfig = ExportConfig()
    storage: StorageConfig = StorageConfig()


class ConfigFile(BaseModel):
    """Root configuration file structure."""

    profiles: dict[str, ProfileConfig]


def expand_env_vars(value: str) -> str:
    """Expand ${VAR} references in a string; unset variables expand to "".

    Args:
        value: String potentially containing env var references

    Returns:
        String with env vars expanded
    """
    if not isinstance(value, str):
        return value

    pattern = r"\$\{([^}]+)\}"

    def replacer(match):
        return os.environ.get(match.group(1), "")

    return re.sub(pattern, replacer, value)


def expand_env_vars_recursive(data):
    """Recursively expand env vars in nested dict/list structures."""
    if isinstance(data, dict):
        return {k: expand_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def read_config_file(config_path: Path) -> ConfigFile:
    """Read, expand and validate a profiles YAML file."""
    with open(config_path) as f:
        raw_data = yaml.safe_load(f) or {}

    return ConfigFile(**expand_env_vars_recursive(raw_data))


def load_config_from_yaml(config_path: Path, profile_name: str) -> ProfileConfig:
    """Load one profile from a YAML file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config is invalid
        KeyError: If profile doesn't exist
    """
    config_file = read_config_file(config_path)

    if profile_name not in config_file.profiles:
        available = ", ".join(config_file.profiles.keys())
        raise KeyError(
            f"Profile '{profile_name}' not found. Available profiles: {available}"
        )

    return config_file.profiles[profile_name]


def load_config_from_env() -> ProfileConfig:
    """Build a profile from environment variables and defaults (fallback mode)."""
    return ProfileConfig(
        pubmed=PubMedConfig(
            api_key=os.environ.get("PUBMED_API_KEY"),
            email=os.environ.get("PUBMED_EMAIL"),
            tool=os.environ.get("PUBMED_TOOL"),
        ),
        semantic_scholar=SemanticScholarConfig(
            api_key=os.environ.get("SEMANTIC_SCHOLAR_API_KEY"),
        ),
        storage=StorageConfig(
            bucket=os.environ.get("AWS_S3_BUCKET"),
            region=os.environ.get("AWS_REGION"),
        ),
    )


def list_profiles(config_path: Path | None = None) -> list[str]:
    """Names of the profiles defined in the config file."""
    return list(read_config_file(config_path or DEFAULT_CONFIG_PATH).profiles)


def load_config(
    profile: str | None = None,
    config_path: Path | None = None,
) -> ProfileConfig:
    """Load configuration from the YAML file or environment variables.

    Args:
        profile: Profile name to load. If None, uses HEALTHLIT_PROFILE env var
                or "default".
        config_path: Path to config file. If None, uses the bundled profiles.yaml.

    Raises:
        KeyError: If the requested profile doesn't exist in the file
    """
    if profile is None:
        profile = os.environ.get("HEALTHLIT_PROFILE", DEFAULT_PROFILE)

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        logger.warning(f"Config file {config_path} not found, using environment variables")
        return load_config_from_env()

    try:
        return load_config_from_yaml(config_path, profile)
    except KeyError:
        raise
    except Exception as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        logger.warning("Falling back to environment variables...")
        return load_config_from_env()
