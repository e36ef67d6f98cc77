"""Relationship definitions loaded from a TOML file.

Example ``shadow-taxonomy.toml``::

    [[relationship]]
    mirror_kind = "_actor"
    source_kinds = ["actor"]
    consumer_kinds = ["movie"]

    [relationship.taxonomy_options]
    label = "Actors"
    hierarchical = false
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Final

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigurationError, MissingConfigurationError

log = logging.getLogger(__name__)

CONFIG_PATH_ENV: Final[str] = "SHADOW_TAXONOMY_CONFIG"
DEFAULT_CONFIG_FILENAME: Final[str] = "shadow-taxonomy.toml"


class RelationshipEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    mirror_kind: str = Field(min_length=1)
    source_kinds: tuple[str, ...] = Field(min_length=1)
    consumer_kinds: tuple[str, ...] = ()
    taxonomy_options: dict[str, Any] = Field(default_factory=dict)


class RelationshipsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    relationships: tuple[RelationshipEntry, ...] = Field(default=(), alias="relationship")

    def source_kinds(self) -> tuple[str, ...]:
        return tuple(kind for entry in self.relationships for kind in entry.source_kinds)

    def mirror_kinds(self) -> tuple[str, ...]:
        return tuple(entry.mirror_kind for entry in self.relationships)


def resolve_config_path(path: Path | str | None = None) -> tuple[Path, bool]:
    """Return the config path and whether it was requested explicitly."""

    if path is not None:
        return Path(path), True
    env_path = os.getenv(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path), True
    return Path.cwd() / DEFAULT_CONFIG_FILENAME, False


def load_relationships(path: Path | str | None = None) -> RelationshipsConfig:
    """Load and validate relationship definitions.

    A missing default file yields an empty configuration; a missing file that
    was named explicitly (argument or environment) is an error.
    """

    config_path, explicit = resolve_config_path(path)
    if not config_path.is_file():
        if explicit:
            raise MissingConfigurationError(f"Relationship config not found: {config_path}")
        log.debug("No relationship config at %s", config_path)
        return RelationshipsConfig()

    try:
        with config_path.open("rb") as handle:
            payload = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {config_path}: {exc}") from exc
    return parse_relationships(payload, source=str(config_path))


def parse_relationships(
    payload: dict[str, Any], *, source: str = "<memory>"
) -> RelationshipsConfig:
    try:
        config = RelationshipsConfig.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ConfigurationError(f"Invalid relationship config in {source}: {exc}") from exc
    log.debug("Loaded %s relationship(s) from %s", len(config.relationships), source)
    return config
