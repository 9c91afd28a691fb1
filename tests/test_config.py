"""Configuration precedence and validation."""
from pathlib import Path

import pytest

from ajax_conformance.config import HarnessConfig, load_config, read_env_file
from ajax_conformance.errors import ConfigurationError

CREDENTIALS = {"WP_URL": "https://env.test", "WP_USERNAME": "env-user", "WP_PASSWORD": "env-pass"}


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """No stray ``.env`` from the repository leaks into these tests."""
    monkeypatch.chdir(tmp_path)


def test_read_env_file_handles_comments_quotes_and_export(tmp_path):
    env = tmp_path / "site.env"
    env.write_text(
        "# target\n"
        "WP_URL='https://file.test'\n"
        'export WP_USERNAME="file-user"\n'
        "\n"
        "WP_PASSWORD=p=ss\n",
        encoding="utf-8",
    )
    assert read_env_file(env) == {
        "WP_URL": "https://file.test",
        "WP_USERNAME": "file-user",
        "WP_PASSWORD": "p=ss",
    }


def test_read_env_file_missing_is_empty(tmp_path):
    assert read_env_file(tmp_path / "absent.env") == {}


def test_environment_values_are_used():
    config = load_config(environ=CREDENTIALS)
    assert config.base_url == "https://env.test"
    assert config.headless is True
    assert config.report_path == Path("logs/all-tools-detailed-report.json")


def test_overrides_beat_environment_and_file(tmp_path):
    env = tmp_path / ".env"
    env.write_text("WP_URL=https://file.test\nWP_USERNAME=file-user\nWP_PASSWORD=file-pass\n", encoding="utf-8")
    config = load_config(
        env_file=env,
        environ={"WP_USERNAME": "env-user"},
        password="flag-pass",
    )
    assert config.base_url == "https://file.test"
    assert config.username == "env-user"
    assert config.password == "flag-pass"


def test_default_env_file_in_working_directory(tmp_path):
    (tmp_path / ".env").write_text(
        "WP_URL=https://cwd.test\nWP_USERNAME=u\nWP_PASSWORD=p\nHARNESS_MAX_SKIPPED=3\n", encoding="utf-8"
    )
    config = load_config(environ={})
    assert config.base_url == "https://cwd.test"
    assert config.max_skipped == 3


def test_typed_values_are_parsed():
    config = load_config(
        environ={
            **CREDENTIALS,
            "PLAYWRIGHT_HEADLESS": "false",
            "PLAYWRIGHT_BROWSER": "firefox",
            "HARNESS_DRIVER_TIMEOUT_MS": "45000",
            "HARNESS_PREFLIGHT": "no",
            "HARNESS_REPORT_PATH": "out/run.json",
        }
    )
    assert config.headless is False
    assert config.browser_type == "firefox"
    assert config.driver_timeout_ms == 45000
    assert config.preflight is False
    assert config.report_path == Path("out/run.json")


def test_missing_credentials_are_reported_together():
    with pytest.raises(ConfigurationError) as excinfo:
        load_config(environ={"WP_URL": "https://env.test"})
    assert "WP_USERNAME" in str(excinfo.value)
    assert "WP_PASSWORD" in str(excinfo.value)


def test_missing_explicit_env_file_is_an_error(tmp_path):
    with pytest.raises(ConfigurationError, match="Env file not found"):
        load_config(env_file=tmp_path / "nope.env", environ=CREDENTIALS)


@pytest.mark.parametrize(
    "key, value",
    [("PLAYWRIGHT_HEADLESS", "maybe"), ("HARNESS_MAX_SKIPPED", "many"), ("PLAYWRIGHT_BROWSER", "lynx")],
)
def test_invalid_values_are_rejected(key, value):
    with pytest.raises(ConfigurationError):
        load_config(environ={**CREDENTIALS, key: value})


def test_negative_max_skipped_is_rejected():
    with pytest.raises(ConfigurationError):
        HarnessConfig(base_url="https://x.test", username="u", password="p", max_skipped=-1)


def test_url_helpers():
    config = HarnessConfig(base_url="https://site.test/blog/", username="u", password="p")
    assert config.login_url == "https://site.test/blog/wp-admin"
    assert config.tab_url("bulk-operations") == "https://site.test/blog/wp-admin/admin.php?page=aiseo&tab=bulk-operations"
    assert config.url("/wp-admin/admin-ajax.php") == "https://site.test/blog/wp-admin/admin-ajax.php"
