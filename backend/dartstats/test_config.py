import logging

from dartstats import config


def test_int_from_env_defaults(monkeypatch) -> None:
    monkeypatch.delenv("DARTSTATS_TEST_LIMIT", raising=False)
    assert config._int_from_env("DARTSTATS_TEST_LIMIT", 30) == 30

    monkeypatch.setenv("DARTSTATS_TEST_LIMIT", "  ")
    assert config._int_from_env("DARTSTATS_TEST_LIMIT", 30) == 30


def test_int_from_env_reads_value(monkeypatch) -> None:
    monkeypatch.setenv("DARTSTATS_TEST_LIMIT", "12")
    assert config._int_from_env("DARTSTATS_TEST_LIMIT", 30) == 12


def test_int_from_env_rejects_bad_values(monkeypatch, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        monkeypatch.setenv("DARTSTATS_TEST_LIMIT", "lots")
        assert config._int_from_env("DARTSTATS_TEST_LIMIT", 30) == 30
        monkeypatch.setenv("DARTSTATS_TEST_LIMIT", "-4")
        assert config._int_from_env("DARTSTATS_TEST_LIMIT", 30) == 30

    assert "not an integer" in caplog.text
    assert "must be positive" in caplog.text


def test_log_level_from_env(monkeypatch, caplog) -> None:
    monkeypatch.setenv("DARTSTATS_TEST_LEVEL", "debug")
    assert config._log_level_from_env("DARTSTATS_TEST_LEVEL", "INFO") == "DEBUG"

    monkeypatch.delenv("DARTSTATS_TEST_LEVEL")
    assert config._log_level_from_env("DARTSTATS_TEST_LEVEL", "INFO") == "INFO"

    monkeypatch.setenv("DARTSTATS_TEST_LEVEL", "loud")
    with caplog.at_level(logging.WARNING):
        assert config._log_level_from_env("DARTSTATS_TEST_LEVEL", "INFO") == "INFO"
    assert "not a logging level" in caplog.text
