"""
reqgraph.config - Configuration loading and document descriptions
"""

from reqgraph.config.loader import (
    CONFIG_FILENAME,
    ConfigError,
    find_config_file,
    load_config,
)
from reqgraph.config.models import (
    Attribute,
    AttributeType,
    Config,
    Document,
    Implementation,
    LinkSpec,
    RepoConfig,
    ReqSpec,
    Schema,
)
from reqgraph.config.repos import RepositoryError, RepositorySet

__all__ = [
    "CONFIG_FILENAME",
    "Attribute",
    "AttributeType",
    "Config",
    "ConfigError",
    "Document",
    "Implementation",
    "LinkSpec",
    "RepoConfig",
    "RepositoryError",
    "RepositorySet",
    "ReqSpec",
    "Schema",
    "find_config_file",
    "load_config",
]
