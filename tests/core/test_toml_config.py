from __future__ import annotations

from pathlib import Path

import pytest

from mdpress.core import config as core_config


def test_load_toml_parses_file(tmp_path: Path) -> None:
    path = tmp_path / "a.toml"
    path.write_text('[output]\nformat = "docx"\n', encoding="utf-8")

    assert core_config.load_toml(path) == {"output": {"format": "docx"}}


def test_load_toml_missing_and_invalid(tmp_path: Path) -> None:
    with pytest.raises(core_config.TomlConfigError, match="not found"):
        core_config.load_toml(tmp_path / "missing.toml")

    bad = tmp_path / "bad.toml"
    bad.write_text("[output\n", encoding="utf-8")
    with pytest.raises(core_config.TomlConfigError, match="Failed to parse"):
        core_config.load_toml(bad)


def test_merge_defaults_overrides_nested_values() -> None:
    base = {"output": {"format": "pdf", "theme": "default"}, "flag": False}

    core_config.merge_defaults(base, {"output": {"theme": "minimal"}})

    assert base == {
        "output": {"format": "pdf", "theme": "minimal"},
        "flag": False,
    }


def test_merge_defaults_rejects_unknown_keys() -> None:
    base = {"output": {"format": "pdf"}}

    with pytest.raises(
        core_config.TomlConfigError, match="'output.colour'"
    ):
        core_config.merge_defaults(base, {"output": {"colour": "red"}})


def test_merge_defaults_requires_tables() -> None:
    with pytest.raises(core_config.TomlConfigError, match="Expected table"):
        core_config.merge_defaults({"output": {}}, {"output": "pdf"})


def test_write_toml_template_respects_overwrite(tmp_path: Path) -> None:
    target = tmp_path / "cfg" / "mdpress.toml"

    core_config.write_toml_template(target, template="a = 1\n")
    with pytest.raises(core_config.TomlConfigError, match="already exists"):
        core_config.write_toml_template(target, template="a = 2\n")
    core_config.write_toml_template(
        target, template="a = 3\n", overwrite=True
    )

    assert target.read_text(encoding="utf-8") == "a = 3\n"
