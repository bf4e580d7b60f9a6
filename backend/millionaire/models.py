from datetime import datetime, timedelta, timezone
from enum import Enum
import json

from flask import current_app, has_app_context
from flask_login import UserMixin

from millionaire import db, bcrypt
from millionaire.services.games.prizes import PRIZES

QUESTION_LEVELS = range(0, 15)
ANSWER_KEYS = ('a', 'b', 'c', 'd')
DEFAULT_TIME_LIMIT_MIN = 35


def utcnow():
    """Naive UTC timestamp, matching what the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def game_time_limit():
    minutes = DEFAULT_TIME_LIMIT_MIN
    if has_app_context():
        minutes = int(current_app.config.get('GAME_TIME_LIMIT_MIN', DEFAULT_TIME_LIMIT_MIN))
    return timedelta(minutes=minutes)


class HelpType(str, Enum):
    FIFTY_FIFTY = 'fifty_fifty'
    AUDIENCE_HELP = 'audience_help'
    FRIEND_CALL = 'friend_call'

    @classmethod
    def parse(cls, value):
        """Return the HelpType for `value` or None when it names no hint."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return None


# Payload carried by each hint inside GameQuestion.help_hash
HELP_PAYLOAD_TYPES = {
    HelpType.FIFTY_FIFTY: list,
    HelpType.AUDIENCE_HELP: dict,
    HelpType.FRIEND_CALL: str,
}


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    balance = db.Column(db.Integer, default=0, nullable=False)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    games = db.relationship('Game', back_populates='user', lazy='dynamic',
                            order_by='Game.created_at.desc()')

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def games_in_progress(self):
        return self.games.filter(Game.finished_at.is_(None))

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'balance': self.balance or 0,
        }


class Question(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.Integer, primary_key=True)
    text = db.Column(db.Text, unique=True, nullable=False)
    level = db.Column(db.Integer, nullable=False, index=True)
    # answer1 is always the right one; GameQuestion shuffles the letters
    answer1 = db.Column(db.String(255), nullable=False)
    answer2 = db.Column(db.String(255), nullable=False)
    answer3 = db.Column(db.String(255), nullable=False)
    answer4 = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def answer(self, slot):
        return getattr(self, f'answer{slot}')

    def validate(self):
        errors = {}
        if self.text is not None and not isinstance(self.text, str):
            errors.setdefault('text', []).append('must be a string')
        elif not (self.text or '').strip():
            errors.setdefault('text', []).append("can't be blank")
        else:
            duplicate = Question.query.filter(Question.text == self.text)
            if self.id is not None:
                duplicate = duplicate.filter(Question.id != self.id)
            with db.session.no_autoflush:
                if duplicate.first() is not None:
                    errors.setdefault('text', []).append('has already been taken')
        if self.level is None or self.level == '':
            errors.setdefault('level', []).append("can't be blank")
        elif not isinstance(self.level, int) or isinstance(self.level, bool) or self.level not in QUESTION_LEVELS:
            errors.setdefault('level', []).append(
                f'is not included in the list ({QUESTION_LEVELS.start}..{QUESTION_LEVELS.stop - 1})'
            )
        for slot in range(1, 5):
            value = self.answer(slot)
            if value is not None and not isinstance(value, str):
                errors.setdefault(f'answer{slot}', []).append('must be a string')
            elif not (value or '').strip():
                errors.setdefault(f'answer{slot}', []).append("can't be blank")
        return errors

    def to_dict(self):
        return {
            'id': self.id,
            'text': self.text,
            'level': self.level,
            'answers': [self.answer(slot) for slot in range(1, 5)],
        }


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    current_level = db.Column(db.Integer, default=0, nullable=False)
    is_failed = db.Column(db.Boolean, default=False, nullable=False)
    finished_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    prize = db.Column(db.Integer, default=0, nullable=False)
    fifty_fifty_used = db.Column(db.Boolean, default=False, nullable=False)
    audience_help_used = db.Column(db.Boolean, default=False, nullable=False)
    friend_call_used = db.Column(db.Boolean, default=False, nullable=False)

    user = db.relationship('User', back_populates='games')
    game_questions = db.relationship('GameQuestion', back_populates='game',
                                     order_by='GameQuestion.id',
                                     cascade='all, delete-orphan')

    @property
    def finished(self):
        return self.finished_at is not None

    @property
    def previous_level(self):
        return self.current_level - 1

    @property
    def current_game_question(self):
        return self._game_question_at(self.current_level)

    @property
    def previous_game_question(self):
        return self._game_question_at(self.previous_level)

    def _game_question_at(self, level):
        for gq in self.game_questions:
            if gq.level == level:
                return gq
        return None

    def help_used(self, help_type):
        return bool(getattr(self, f'{HelpType(help_type).value}_used'))

    def timed_out(self, now=None):
        if self.created_at is None:
            return False
        return ((now or utcnow()) - self.created_at) > game_time_limit()

    def status_at(self, now=None):
        if not self.finished:
            return 'in_progress'
        if self.is_failed:
            return 'timeout' if self.timed_out(now) else 'fail'
        if self.current_level > max(QUESTION_LEVELS):
            return 'won'
        return 'money'

    @property
    def status(self):
        return self.status_at()

    def validate(self):
        errors = {}
        if self.user is None and self.user_id is None:
            errors.setdefault('user', []).append('must exist')
        level = self.current_level
        if not isinstance(level, int) or isinstance(level, bool) or not 0 <= level <= max(QUESTION_LEVELS) + 1:
            errors.setdefault('current_level', []).append('is not a valid level')
        prize = self.prize if self.prize is not None else 0
        if not isinstance(prize, int) or not 0 <= prize <= PRIZES[-1]:
            errors.setdefault('prize', []).append(f'must be between 0 and {PRIZES[-1]}')
        return errors

    def to_dict(self, include_question=False):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'status': self.status,
            'current_level': self.current_level,
            'prize': self.prize or 0,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
            'help_used': {h.value: self.help_used(h) for h in HelpType},
        }
        if include_question:
            gq = self.current_game_question
            data['question'] = gq.to_dict() if gq else None
        return data


class GameQuestion(db.Model):
    __tablename__ = 'game_question'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=False)
    # Answer slot (1..4) shown under each letter
    a = db.Column(db.Integer, nullable=False)
    b = db.Column(db.Integer, nullable=False)
    c = db.Column(db.Integer, nullable=False)
    d = db.Column(db.Integer, nullable=False)
    help_hash_json = db.Column('help_hash', db.Text, nullable=True)  # JSON-encoded {help_type: payload}

    game = db.relationship('Game', back_populates='game_questions')
    question = db.relationship('Question')

    @property
    def text(self):
        return self.question.text if self.question else None

    @property
    def level(self):
        return self.question.level if self.question else None

    @property
    def variants(self):
        return {key: self.question.answer(getattr(self, key)) for key in ANSWER_KEYS}

    @property
    def correct_answer_key(self):
        for key in ANSWER_KEYS:
            if getattr(self, key) == 1:
                return key
        return None

    @property
    def correct_answer(self):
        return self.variants[self.correct_answer_key]

    def answer_correct(self, letter):
        return str(letter or '').strip().lower() == self.correct_answer_key

    @property
    def help_hash(self):
        try:
            return json.loads(self.help_hash_json) if self.help_hash_json else {}
        except ValueError:
            return {}

    def set_help(self, help_type, payload):
        kind = HelpType.parse(help_type)
        if kind is None:
            raise ValueError(f'unknown help type: {help_type!r}')
        if not isinstance(payload, HELP_PAYLOAD_TYPES[kind]):
            raise TypeError(f'{kind.value} expects {HELP_PAYLOAD_TYPES[kind].__name__}, got {type(payload).__name__}')
        data = self.help_hash
        data[kind.value] = payload
        self.help_hash_json = json.dumps(data)

    def validate(self):
        errors = {}
        if self.game is None and self.game_id is None:
            errors.setdefault('game', []).append('must exist')
        if self.question is None and self.question_id is None:
            errors.setdefault('question', []).append('must exist')
        slots = [getattr(self, key) for key in ANSWER_KEYS]
        for key, slot in zip(ANSWER_KEYS, slots):
            if slot not in (1, 2, 3, 4):
                errors.setdefault(key, []).append('is not included in the list (1..4)')
        if not errors and len(set(slots)) != 4:
            errors.setdefault('base', []).append('answer slots must be a permutation of 1..4')
        return errors

    def to_dict(self):
        return {
            'id': self.id,
            'level': self.level,
            'text': self.text,
            'variants': self.variants,
            'help_hash': self.help_hash,
        }
