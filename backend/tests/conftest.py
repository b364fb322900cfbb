import os
import sys
import random
import pytest

# Ensure the backend root (containing the `fan_h2h` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from fan_h2h import create_app, db, socketio
from fan_h2h.services.errors import UpstreamUnavailable
from fan_h2h.services.matches.engine import GameManager, PlayerRef
from fan_h2h.services.matches.scheduler import ManualScheduler


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['*']
    SOCKETIO_NAMESPACE = '/ws'
    QUESTIONS_PER_MATCH = 3
    AFFINITY_QUESTIONS_PER_PLAYER = 2
    QUESTION_SEED = 1234


QUESTIONS = [
    {'id': 't1', 'question': 'Capital of France?', 'options': ['Lyon', 'Paris', 'Nice', 'Lille'], 'correct_index': 1},
    {'id': 't2', 'question': '2 + 2?', 'options': ['3', '5', '4', '22'], 'correct_index': 2},
    {'id': 't3', 'question': 'Colour of grass?', 'options': ['Green', 'Blue', 'Red', 'Pink'], 'correct_index': 0},
]


class RecordingBroadcaster:
    def __init__(self):
        self.events = []
        self.rooms = {}
        self.closed = []

    def join(self, sid, match_id):
        self.rooms.setdefault(match_id, set()).add(sid)

    def close(self, match_id):
        self.closed.append(match_id)

    def to_player(self, sid, event, payload=None):
        self.events.append(('player', sid, event, payload or {}))

    def to_match(self, match_id, event, payload=None):
        self.events.append(('match', match_id, event, payload or {}))

    def named(self, event):
        return [e for e in self.events if e[2] == event]


class StaticQuestionSource:
    def __init__(self, by_club=None, all_questions=None, fail_affinity=False, fail_all=False):
        self.by_club = by_club or {}
        self.all_questions = list(all_questions or [])
        self.fail_affinity = fail_affinity
        self.fail_all = fail_all

    def fetch_by_affinity(self, club_id, count):
        if self.fail_affinity:
            raise UpstreamUnavailable('affinity down')
        return list(self.by_club.get(club_id, []))[:count]

    def fetch_all(self):
        if self.fail_all:
            raise UpstreamUnavailable('bank down')
        return list(self.all_questions)


class RecordingRecorder:
    def __init__(self, ok=True):
        self.ok = ok
        self.calls = []

    def record_match(self, player1_id, player2_id, questions, p1_score, p2_score, winner_id, match_id=None):
        self.calls.append({
            'player1_id': player1_id,
            'player2_id': player2_id,
            'questions': questions,
            'p1_score': p1_score,
            'p2_score': p2_score,
            'winner_id': winner_id,
            'match_id': match_id,
        })
        return self.ok


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import fan_h2h.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def h2h(flask_app):
    return flask_app.extensions['fan_h2h']


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def recorder():
    return RecordingRecorder()


@pytest.fixture()
def question_source():
    return StaticQuestionSource(all_questions=QUESTIONS)


@pytest.fixture()
def game_manager(flask_app, broadcaster, scheduler, question_source, recorder):
    return GameManager(
        flask_app,
        broadcaster=broadcaster,
        scheduler=scheduler,
        question_source=question_source,
        recorder=recorder,
        rng=random.Random(42),
    )


@pytest.fixture()
def players():
    alice = PlayerRef(sid='sid-a', user={'id': 'user-a', 'name': 'Alice', 'email': 'a@example.com', 'club_id': 'ajax'})
    bob = PlayerRef(sid='sid-b', user={'id': 'user-b', 'name': 'Bob', 'email': 'b@example.com', 'club_id': 'psg'})
    return alice, bob
