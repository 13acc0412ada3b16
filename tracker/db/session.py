# tracker/db/session.py
from starlette.requests import HTTPConnection


def get_db(conn: HTTPConnection):
    """
    FastAPI dependency that returns the Mongo database the app was started with
    """
    return conn.app.state.db
