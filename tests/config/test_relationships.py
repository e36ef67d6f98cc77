from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest

from shadow_taxonomy.config import (
    ConfigurationError,
    MissingConfigurationError,
    load_relationships,
    parse_relationships,
)
from shadow_taxonomy.config.relationships import CONFIG_PATH_ENV, DEFAULT_CONFIG_FILENAME

CONFIG_TOML = """
[[relationship]]
mirror_kind = "_actor"
source_kinds = ["actor"]
consumer_kinds = ["movie", "series"]

[relationship.taxonomy_options]
label = "Actors"

[[relationship]]
mirror_kind = "_director"
source_kinds = ["director"]
"""


def test_load_relationships_parses_entries(tmp_path: Path) -> None:
    path = tmp_path / "mirror.toml"
    path.write_text(CONFIG_TOML)

    config = load_relationships(path)

    assert config.mirror_kinds() == ("_actor", "_director")
    assert config.source_kinds() == ("actor", "director")
    actor = config.relationships[0]
    assert actor.consumer_kinds == ("movie", "series")
    assert actor.taxonomy_options == {"label": "Actors"}
    assert config.relationships[1].consumer_kinds == ()


def test_load_relationships_reads_env_path(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    path = tmp_path / "from-env.toml"
    path.write_text(CONFIG_TOML)
    monkeypatch.setenv(CONFIG_PATH_ENV, str(path))

    assert len(load_relationships().relationships) == 2


def test_missing_default_file_is_empty(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
    monkeypatch.chdir(tmp_path)
    assert not (tmp_path / DEFAULT_CONFIG_FILENAME).exists()

    assert load_relationships().relationships == ()


def test_missing_explicit_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(MissingConfigurationError, match="not found"):
        load_relationships(tmp_path / "absent.toml")


def test_invalid_toml_is_a_configuration_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.toml"
    path.write_text("[[relationship]\nmirror_kind =")

    with pytest.raises(ConfigurationError, match="Invalid TOML"):
        load_relationships(path)


@pytest.mark.parametrize(
    "entry",
    [
        {"mirror_kind": "", "source_kinds": ["actor"]},
        {"mirror_kind": "_actor", "source_kinds": []},
        {"mirror_kind": "_actor", "source_kinds": ["actor"], "unknown": True},
    ],
)
def test_parse_relationships_rejects_invalid_entries(entry: dict[str, object]) -> None:
    with pytest.raises(ConfigurationError, match="Invalid relationship config"):
        parse_relationships({"relationship": [entry]})
