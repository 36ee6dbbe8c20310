import pytest

from tinyrepo.casing import Case
from tinyrepo.config import Config


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("DATABASE_URL", "TINYREPO_COLUMN_CASING", "TINYREPO_ECHO_SQL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TINYREPO_ENV", "test")
    return monkeypatch


class TestFromEnv:
    """Tests for Config.from_env()"""

    def test_defaults(self, clean_env):
        config = Config.from_env()

        assert config.environment == "test"
        assert config.database_url is None
        assert config.column_casing is None
        assert config.echo_sql is False

    def test_database_url(self, clean_env):
        clean_env.setenv("DATABASE_URL", "postgresql://localhost/app")

        assert Config.from_env().database_url == "postgresql://localhost/app"

    def test_empty_database_url_is_none(self, clean_env):
        clean_env.setenv("DATABASE_URL", "")

        assert Config.from_env().database_url is None

    @pytest.mark.parametrize(
        "value,expected",
        [("lower_camel", Case.LOWER_CAMEL), ("UPPER_SNAKE", Case.UPPER_SNAKE)],
    )
    def test_column_casing(self, clean_env, value, expected):
        clean_env.setenv("TINYREPO_COLUMN_CASING", value)

        assert Config.from_env().column_casing is expected

    def test_invalid_column_casing_raises(self, clean_env):
        clean_env.setenv("TINYREPO_COLUMN_CASING", "sideways")

        with pytest.raises(ValueError, match="Unknown column casing"):
            Config.from_env()

    @pytest.mark.parametrize(
        "value,expected",
        [("1", True), ("true", True), ("Yes", True), ("on", True), ("0", False), ("no", False), ("", False)],
    )
    def test_echo_sql(self, clean_env, value, expected):
        clean_env.setenv("TINYREPO_ECHO_SQL", value)

        assert Config.from_env().echo_sql is expected
