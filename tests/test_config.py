"""Configuration class tests."""

import pytest

from taskboard import create_app
from taskboard.config import ProductionConfig, _database_url, config


def test_database_url_rewrites_postgres_scheme(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db:5432/taskboard")
    assert _database_url("DATABASE_URL") == "postgresql://u:p@db:5432/taskboard"


def test_database_url_unset(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert _database_url("DATABASE_URL") is None


def test_config_names():
    assert set(config) == {"development", "testing", "production", "default"}
    assert config["default"] is config["development"]


def test_production_requires_database_url(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", None)
    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        create_app("production")


def test_production_requires_secret_key(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", "postgresql://db/taskboard")
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        ProductionConfig()
