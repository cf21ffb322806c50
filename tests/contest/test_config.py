"""Tests for contest settings layering (defaults < CLI < env)."""

import argparse

import pytest
from pydantic import ValidationError

from kulture.contest.config import ContestSettings, add_args


@pytest.fixture
def parser():
    p = argparse.ArgumentParser()
    add_args(p)
    return p


class TestContestSettings:

    def test_defaults(self, parser):
        settings = ContestSettings.from_sources(parser.parse_args([]), env={})
        assert settings.host == "0.0.0.0"
        assert settings.port == 8300
        assert settings.database_url is None
        assert settings.epoch is None
        assert settings.archive_results is True

    def test_cli_overrides_defaults(self, parser):
        args = parser.parse_args([
            "--contest.port", "9000",
            "--contest.database_url", "sqlite:///contest.db",
            "--contest.epoch", "2026",
            "--contest.no_archive",
        ])
        settings = ContestSettings.from_sources(args, env={})
        assert settings.port == 9000
        assert settings.database_url == "sqlite:///contest.db"
        assert settings.epoch == 2026
        assert settings.archive_results is False

    def test_env_overrides_cli(self, parser):
        args = parser.parse_args(["--contest.port", "9000", "--contest.host", "127.0.0.1"])
        settings = ContestSettings.from_sources(args, env={
            "KULTURE_CONTEST__PORT": "9100",
            "KULTURE_CONTEST__ARCHIVE_RESULTS": "false",
        })
        assert settings.port == 9100
        assert settings.host == "127.0.0.1"
        assert settings.archive_results is False

    def test_empty_env_ignored(self, parser):
        settings = ContestSettings.from_sources(
            parser.parse_args([]), env={"KULTURE_CONTEST__PORT": ""},
        )
        assert settings.port == 8300

    def test_invalid_port(self):
        with pytest.raises(ValidationError):
            ContestSettings.from_sources(env={"KULTURE_CONTEST__PORT": "70000"})
