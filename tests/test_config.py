import pytest

from tmops.core.auth import AuthError, get_session
from tmops.core.adapters.tmserver import TMServerAdapter
from tmops.core.config import DEFAULT_TIMEOUT_SECONDS, ConfigError, load_config


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for var in ("TMOPS_HOST", "TMOPS_TOKEN", "TMOPS_TIMEOUT", "TMOPS_PROFILE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("TMOPS_CONFIG_FILE", str(tmp_path / "tmopscfg"))


def _write_config(tmp_path, text: str) -> None:
    (tmp_path / "tmopscfg").write_text(text)


def test_load_config_reads_profile_section(tmp_path):
    _write_config(
        tmp_path,
        "[DEFAULT]\nhost = https://default.example.com\n\n"
        "[prod]\nhost = https://tm.example.com/?tenant=acme\ntoken = s3cret\ntimeout = 5\n",
    )

    cfg = load_config("prod")

    assert cfg.host == "https://tm.example.com"
    assert cfg.token == "s3cret"
    assert cfg.timeout == 5.0
    assert cfg.profile == "prod"


def test_load_config_default_profile(tmp_path):
    _write_config(tmp_path, "[DEFAULT]\nhost = https://default.example.com/\n")

    cfg = load_config()

    assert cfg.host == "https://default.example.com"
    assert cfg.token is None
    assert cfg.timeout == DEFAULT_TIMEOUT_SECONDS


def test_env_overrides_win_over_file(tmp_path, monkeypatch):
    _write_config(tmp_path, "[DEFAULT]\nhost = https://file.example.com\ntimeout = 5\n")
    monkeypatch.setenv("TMOPS_HOST", "https://env.example.com")
    monkeypatch.setenv("TMOPS_TIMEOUT", "12.5")

    cfg = load_config()

    assert cfg.host == "https://env.example.com"
    assert cfg.timeout == 12.5


@pytest.mark.parametrize("raw", ["abc", "0", "-3"])
def test_invalid_timeout_is_rejected(monkeypatch, raw: str):
    monkeypatch.setenv("TMOPS_HOST", "https://env.example.com")
    monkeypatch.setenv("TMOPS_TIMEOUT", raw)

    with pytest.raises(ConfigError, match="timeout"):
        load_config()


def test_default_profile_without_file_uses_env(monkeypatch):
    monkeypatch.setenv("TMOPS_HOST", "https://env.example.com")

    cfg = load_config("DEFAULT")

    assert cfg.host == "https://env.example.com"
    assert cfg.timeout == DEFAULT_TIMEOUT_SECONDS


def test_profile_can_come_from_env(tmp_path, monkeypatch):
    _write_config(tmp_path, "[DEFAULT]\nhost = https://default.example.com\n\n[prod]\nhost = https://prod.example.com\n")
    monkeypatch.setenv("TMOPS_PROFILE", "prod")

    assert load_config().host == "https://prod.example.com"


def test_missing_host_raises():
    with pytest.raises(ConfigError, match="No TM server host"):
        load_config()


def test_unknown_profile_raises(tmp_path):
    _write_config(tmp_path, "[DEFAULT]\nhost = https://default.example.com\n")

    with pytest.raises(ConfigError, match="Profile 'staging' not found"):
        load_config("staging")


def test_get_session_wraps_config_errors():
    with pytest.raises(AuthError, match="authentication failed"):
        get_session("prod")


def test_get_session_builds_authenticated_client(monkeypatch):
    monkeypatch.setenv("TMOPS_HOST", "https://tm.example.com/")
    monkeypatch.setenv("TMOPS_TOKEN", "s3cret")
    monkeypatch.setenv("TMOPS_TIMEOUT", "7")

    session = get_session()
    try:
        assert isinstance(session, TMServerAdapter)
        assert str(session.client.base_url).rstrip("/") == "https://tm.example.com"
        assert session.client.headers["Authorization"] == "Bearer s3cret"
        assert session.client.timeout.read == 7.0
    finally:
        session.close()
