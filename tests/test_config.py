import logging

from starlette.datastructures import State

from tracker.core.config import Settings, get_app_settings
from tracker.core.logging_config import setup_logging


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("MONGO_DB", "from_env")
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15")

    s = Settings()

    assert s.mongo_db == "from_env"
    assert s.access_token_expire_minutes == 15
    assert s.jwt_algorithm == "HS256"


def test_app_settings_prefer_the_running_app(settings):
    class Conn:
        class app:
            state = State()

    Conn.app.state.settings = settings
    assert get_app_settings(Conn) is settings


def test_setup_logging_does_not_stack_handlers():
    root = logging.getLogger()
    before = list(root.handlers)

    setup_logging("DEBUG")
    setup_logging("DEBUG")

    added = [h for h in root.handlers if h not in before]
    assert len(added) <= 1
