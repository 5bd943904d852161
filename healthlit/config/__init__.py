"""Configuration system for the ingestion pipeline."""

from .loader import (
    load_config,
    load_config_from_yaml,
    load_config_from_env,
    list_profiles,
    ProfileConfig,
    PubMedConfig,
    SemanticScholarConfig,
    RetryConfig,
    ExportConfig,
    StorageConfig,
)
from .factory import (
    create_retry_policy,
    create_pubmed_fetcher,
    create_scholar_fetcher,
    create_storage,
    create_run_context,
)

__all__ = [
    # Loader
    "load_config",
    "load_config_from_yaml",
    "load_config_from_env",
    "list_profiles",
    "ProfileConfig",
    "PubMedConfig",
    "SemanticScholarConfig",
    "RetryConfig",
    "ExportConfig",
    "StorageConfig",
    # Factory
    "create_retry_policy",
    "create_pubmed_fetcher",
    "create_scholar_fetcher",
    "create_storage",
    "create_run_context",
]
