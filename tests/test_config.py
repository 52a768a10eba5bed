"""
Tests for s3upload.config module.
"""

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from s3upload.config import (
    RunConfig,
    build_run_config,
    check_credentials,
    load_config,
    load_config_with_sources,
    show_config,
)
from s3upload.errors import ConfigurationError


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_config_returns_dict(
        self, temp_dir: Path, config_file: Path
    ) -> None:
        """Test that load_config reads the project config file."""
        config = load_config(temp_dir)

        assert config["bucket"] == "config-bucket"
        assert config["prefix"] == "static"

    def test_no_config_files(self, temp_dir: Path) -> None:
        """Test that missing config files yield an empty configuration."""
        assert load_config(temp_dir) == {}

    def test_deeper_config_overrides_and_ignore_is_additive(
        self, temp_dir: Path, config_file: Path
    ) -> None:
        """Test merge rules between a parent and a child config file."""
        child = temp_dir / "site"
        child.mkdir()
        (child / ".s3upload.json").write_text(
            json.dumps({"prefix": "site", "ignore": ["build"]})
        )

        config, source_map = load_config_with_sources(child)

        assert config["prefix"] == "site"
        assert config["bucket"] == "config-bucket"
        assert config["ignore"] == ["^.", "node_modules", "build"]
        assert source_map["keys"]["prefix"] == str(child / ".s3upload.json")
        assert source_map["config_files"] == [
            str(temp_dir / ".s3upload.json"),
            str(child / ".s3upload.json"),
        ]

    def test_ignore_as_string(self, temp_dir: Path) -> None:
        (temp_dir / ".s3upload.json").write_text(json.dumps({"ignore": "^.,tmp"}))

        assert load_config(temp_dir)["ignore"] == ["^.", "tmp"]

    def test_malformed_file_is_skipped(
        self, temp_dir: Path, capsys: pytest.CaptureFixture
    ) -> None:
        (temp_dir / ".s3upload.json").write_text("{not json")

        config = load_config(temp_dir)

        assert config == {}
        assert "Warning: Failed to parse" in capsys.readouterr().err

    def test_show_config(
        self,
        temp_dir: Path,
        config_file: Path,
        capsys: pytest.CaptureFixture,
    ) -> None:
        merged, source_map = load_config_with_sources(temp_dir)

        show_config(merged, source_map)

        out = capsys.readouterr().out
        assert "Configuration Files" in out
        assert str(config_file) in out
        assert "config-bucket" in out


class TestBuildRunConfig:
    """Tests for build_run_config function."""

    def test_defaults(self, temp_dir: Path) -> None:
        config = build_run_config({}, temp_dir, bucket="my-bucket")

        assert config.bucket == "my-bucket"
        assert config.prefix == ""
        assert config.acl == "private"
        assert config.ignore.patterns == (".",)
        assert config.max_workers == 5
        assert config.working_dir == temp_dir

    def test_file_values_used(
        self, temp_dir: Path, sample_config: Dict[str, Any]
    ) -> None:
        config = build_run_config(sample_config, temp_dir)

        assert config.bucket == "config-bucket"
        assert config.prefix == "static"
        assert config.acl == "public-read"
        assert config.ignore.patterns == (".", "node_modules")
        assert config.max_workers == 3

    def test_cli_overrides_file(
        self, temp_dir: Path, sample_config: Dict[str, Any]
    ) -> None:
        config = build_run_config(
            sample_config,
            temp_dir,
            bucket="cli-bucket",
            prefix="",
            acl="private",
            ignore="tmp",
            max_workers=1,
        )

        assert config.bucket == "cli-bucket"
        assert config.prefix == ""
        assert config.acl == "private"
        assert config.ignore.patterns == ("tmp",)
        assert config.max_workers == 1

    def test_missing_bucket(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigurationError):
            build_run_config({}, temp_dir)

    def test_invalid_acl_in_file(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            build_run_config({"acl": "everyone"}, temp_dir, bucket="b")

        assert "everyone" in str(exc_info.value)

    def test_invalid_max_workers(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigurationError):
            build_run_config({"max_workers": "many"}, temp_dir, bucket="b")
        with pytest.raises(ConfigurationError):
            build_run_config({"max_workers": 0}, temp_dir, bucket="b")

    def test_relative_working_dir_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            RunConfig(bucket="b", working_dir=Path("relative"))

    def test_run_config_is_immutable(self, temp_dir: Path) -> None:
        config = build_run_config({}, temp_dir, bucket="b")

        with pytest.raises(AttributeError):
            config.bucket = "other"  # type: ignore[misc]


class TestCheckCredentials:
    """Tests for check_credentials function."""

    def test_both_present(self) -> None:
        check_credentials(
            {"AWS_ACCESS_KEY_ID": "AKIA", "AWS_SECRET_ACCESS_KEY": "secret"}
        )

    def test_both_missing(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            check_credentials({})

        message = str(exc_info.value)
        assert "AWS_ACCESS_KEY_ID" in message
        assert "AWS_SECRET_ACCESS_KEY" in message

    def test_empty_value_counts_as_missing(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            check_credentials({"AWS_ACCESS_KEY_ID": "AKIA", "AWS_SECRET_ACCESS_KEY": ""})

        assert "AWS_SECRET_ACCESS_KEY" in str(exc_info.value)
        assert "AWS_ACCESS_KEY_ID" not in str(exc_info.value)
