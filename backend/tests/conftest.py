import os
import sys
import itertools
import pytest

# Ensure the backend root (containing the `millionaire` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from millionaire import create_app, db, socketio
from millionaire.models import User, Question, Game, GameQuestion, QUESTION_LEVELS, utcnow


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    GAME_TIME_LIMIT_MIN = 35
    CORS_ORIGINS = ['http://localhost:5173']


PASSWORD = 'password'
_seq = itertools.count(1)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import millionaire.models  # noqa: F401
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


def create_user(username=None, is_admin=False, balance=0):
    user = User(username=username or f'player{next(_seq)}', is_admin=is_admin, balance=balance)
    user.set_password(PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user


def generate_questions(count):
    """Add `count` questions spread evenly over all levels."""
    for i in range(count):
        n = next(_seq)
        db.session.add(Question(
            text=f'Generated question #{n}?',
            level=i % len(QUESTION_LEVELS),
            answer1=f'right {n}', answer2=f'wrong {n}.2', answer3=f'wrong {n}.3', answer4=f'wrong {n}.4',
        ))
    db.session.commit()


def create_game_with_questions(user=None, created_at=None):
    """A fresh game whose correct answer is always under letter 'd'."""
    game = Game(
        user=user or create_user(), current_level=0, prize=0, is_failed=False,
        fifty_fifty_used=False, audience_help_used=False, friend_call_used=False,
        created_at=created_at or utcnow(),
    )
    db.session.add(game)
    for level in QUESTION_LEVELS:
        n = next(_seq)
        question = Question(
            text=f'Question #{n} of level {level}?', level=level,
            answer1=f'right {n}', answer2=f'wrong {n}.2', answer3=f'wrong {n}.3', answer4=f'wrong {n}.4',
        )
        db.session.add(GameQuestion(game=game, question=question, a=4, b=3, c=2, d=1))
    db.session.commit()
    return game


def sign_in(client, user):
    res = client.post('/login', json={'username': user.username, 'password': PASSWORD})
    assert res.status_code == 200
    return res


def get_flashes(client):
    """Flashed messages keyed by category, as left in the session."""
    with client.session_transaction() as sess:
        return {category: message for category, message in sess.get('_flashes', [])}


@pytest.fixture()
def user(flask_app):
    return create_user()


@pytest.fixture()
def game_w_questions(user):
    return create_game_with_questions(user)
