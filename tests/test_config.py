import pytest
from assertive import (
    assert_that,
    is_none,
    raises_exception,
)

from expressway import Config


@pytest.fixture
def config() -> Config:
    return Config(
        {
            "environment": "dev",
            "database": {"host": "localhost", "port": 5432, "options": {"ssl": False}},
            "log.level": "debug",
        }
    )


def test_top_level_lookup(config: Config):
    assert_that(config("environment")).matches("dev")
    assert_that(config["environment"]).matches("dev")


def test_dotted_lookup_walks_nested_mappings(config: Config):
    assert_that(config("database.host")).matches("localhost")
    assert_that(config("database.options.ssl")).matches(False)


def test_literal_dotted_key_wins(config: Config):
    assert_that(config("log.level")).matches("debug")


def test_missing_key_returns_default(config: Config):
    assert_that(config("cache.driver")).matches(is_none())
    assert_that(config("cache.driver", "memory")).matches("memory")
    assert_that(config("database.host.name", "fallback")).matches("fallback")


def test_falsy_values_are_not_replaced_by_default(config: Config):
    assert_that(config("database.options.ssl", True)).matches(False)


def test_item_access_raises_for_missing_key(config: Config):
    with raises_exception(KeyError):
        config["cache.driver"]


def test_mapping_protocol(config: Config):
    assert_that("database.port" in config).matches(True)
    assert_that("database.user" in config).matches(False)
    assert_that(sorted(config)).matches(["database", "environment", "log.level"])
    assert_that(len(config)).matches(3)


def test_config_is_a_copy_of_the_settings():
    settings = {"name": "shop"}
    config = Config(settings)
    settings["name"] = "changed"

    assert_that(config("name")).matches("shop")
    assert_that(len(Config())).matches(0)
