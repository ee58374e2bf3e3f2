import os
import sys
import pytest

# Ensure the project root (containing the `exquisite` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from exquisite import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['*']
    LOG_LEVEL = 'DEBUG'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import exquisite.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def file_app(tmp_path):
    """App on a file-backed SQLite database, shared by connections on several threads."""
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'drawings.db'}"

    application = create_app(FileConfig)
    with application.app_context():
        import exquisite.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


def make_points(count, start=0):
    return [
        {'offsetDx': float(i), 'offsetDy': float(i) / 2, 'pointType': i % 3, 'pressure': 0.5}
        for i in range(start, start + count)
    ]


@pytest.fixture()
def points():
    return make_points


@pytest.fixture()
def upload(client):
    def _upload(count, start=0, player='alice', part='head', code='ROOM1', **extra):
        body = {
            'game_code': code,
            'player_name': player,
            'player_part': part,
            'player_id': 1,
            'player_image': f'{player}.png',
            'drawing_points': make_points(count, start=start),
            'is_completed': False,
        }
        body.update(extra)
        return client.post('/api/updateDrawingStatus', json=body)
    return _upload
