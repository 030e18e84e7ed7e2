"""Tests for config.schema module."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from config.schema import DEFAULT_HOME, DriveSettings


class TestDriveSettings:
    def test_defaults(self):
        settings = DriveSettings(owner="me", repo="drive")
        assert settings.remote == "origin"
        assert settings.push_interval == 5.0
        assert settings.pull_interval == 1.0
        assert settings.queue_size == 20
        assert settings.host == "0.0.0.0"
        assert settings.port == 8080
        assert settings.log_level == "info"

    def test_requires_a_remote(self):
        with pytest.raises(ValidationError, match="No remote configured"):
            DriveSettings()
        with pytest.raises(ValidationError):
            DriveSettings(owner="me")

    def test_default_path_from_repo(self):
        settings = DriveSettings(owner="me", repo="drive")
        assert settings.path == str(DEFAULT_HOME / "drive")

    def test_default_path_from_url(self):
        settings = DriveSettings(url="git@example.com:me/notes.git")
        assert settings.path == str(DEFAULT_HOME / "notes")

    def test_path_expands_user(self):
        settings = DriveSettings(owner="me", repo="drive", path="~/work/drive", ssh_key="~/.ssh/id_ed25519")
        assert settings.path == str(Path.home() / "work" / "drive")
        assert settings.ssh_key == str(Path.home() / ".ssh" / "id_ed25519")


class TestRemoteUrl:
    def test_https_without_key(self):
        assert DriveSettings(owner="me", repo="drive").remote_url == "https://github.com/me/drive"

    def test_ssh_with_key(self):
        settings = DriveSettings(owner="me", repo="drive", ssh_key="/keys/id")
        assert settings.remote_url == "git@github.com:me/drive.git"

    def test_explicit_url_wins(self):
        settings = DriveSettings(owner="me", repo="drive", url="/srv/git/drive.git", ssh_key="/keys/id")
        assert settings.remote_url == "/srv/git/drive.git"


class TestValidation:
    def test_log_level_normalized(self):
        assert DriveSettings(owner="me", repo="drive", log_level="DEBUG").log_level == "debug"

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError, match="Unknown log level"):
            DriveSettings(owner="me", repo="drive", log_level="chatty")

    @pytest.mark.parametrize(
        "field, value",
        [
            ("push_interval", 0),
            ("pull_interval", -1),
            ("queue_size", 0),
            ("inbound_size", 0),
            ("port", 70000),
        ],
    )
    def test_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            DriveSettings(owner="me", repo="drive", **{field: value})

    def test_numeric_strings_coerced(self):
        settings = DriveSettings(owner="me", repo="drive", push_interval="2.5", queue_size="3")
        assert settings.push_interval == 2.5
        assert settings.queue_size == 3
