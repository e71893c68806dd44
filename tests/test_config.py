import pytest

from qopt import config


def test_defaults():
    cfg = config.Config()
    assert cfg.optimization_level in (0, 1, 2)
    assert 0.0 <= cfg.fallback_error_rate < 1.0
    assert cfg.cancellation_tolerance > 0.0


@pytest.mark.parametrize(
    "raw, expected",
    [("3", 3), ("none", None), ("garbage", 7)],
)
def test_int_from_env(monkeypatch, raw, expected):
    monkeypatch.setenv("QOPT_TEST_INT", raw)
    assert config._int_from_env("QOPT_TEST_INT", 7) == expected


def test_int_from_env_unset(monkeypatch):
    monkeypatch.delenv("QOPT_TEST_INT", raising=False)
    assert config._int_from_env("QOPT_TEST_INT", 4) == 4


@pytest.mark.parametrize(
    "raw, expected",
    [("1e-6", 1e-6), ("", 0.5), ("abc", 0.5)],
)
def test_float_from_env(monkeypatch, raw, expected):
    monkeypatch.setenv("QOPT_TEST_FLOAT", raw)
    assert config._float_from_env("QOPT_TEST_FLOAT", 0.5) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [("yes", True), ("OFF", False), ("maybe", True)],
)
def test_bool_from_env(monkeypatch, raw, expected):
    monkeypatch.setenv("QOPT_TEST_BOOL", raw)
    assert config._bool_from_env("QOPT_TEST_BOOL", True) is expected


@pytest.mark.parametrize("raw, expected", [("0.02", 0.02), ("1.0", 0.01), ("-0.5", 0.01)])
def test_rate_from_env_rejects_invalid_probabilities(monkeypatch, raw, expected):
    monkeypatch.setenv("QOPT_TEST_RATE", raw)
    assert config._rate_from_env("QOPT_TEST_RATE", 0.01) == expected


@pytest.mark.parametrize("raw", ["none", "0", "-3", "x"])
def test_positive_int_from_env_falls_back(monkeypatch, raw):
    monkeypatch.setenv("QOPT_TEST_POSITIVE", raw)
    assert config._positive_int_from_env("QOPT_TEST_POSITIVE", 10) == 10


def test_positive_int_from_env_reads_value(monkeypatch):
    monkeypatch.setenv("QOPT_TEST_POSITIVE", "4")
    assert config._positive_int_from_env("QOPT_TEST_POSITIVE", 10) == 4
