import random
from typing import Optional

from flask import current_app
from sqlalchemy import func

from millionaire import db, socketio
from millionaire.models import Game, GameQuestion, Question, QUESTION_LEVELS, utcnow
from millionaire.services.validation import ensure_valid
from .errors import GameInProgressError, NotEnoughQuestionsError
from .prizes import PRIZES, fireproof_prize, money_prize


def notify_game_update(game: Game) -> None:
    """Push the committed state of `game` to its Socket.IO room."""
    socketio.emit('game_update', {
        'game_id': game.id,
        'status': game.status,
        'current_level': game.current_level,
        'prize': game.prize or 0,
    }, to=f"game:{game.id}", namespace='/ws')


def _random_question(level: int) -> Optional[Question]:
    return Question.query.filter_by(level=level).order_by(func.random()).first()


def create_game_for_user(user, now=None) -> Game:
    """Start a new game for `user` with one random question per level.

    Raises GameInProgressError if the user has an unfinished game and
    NotEnoughQuestionsError if some level has no questions; nothing is
    persisted in either case.
    """
    in_progress = user.games_in_progress().first()
    if in_progress is not None:
        raise GameInProgressError(in_progress)

    game = Game(user=user, current_level=0, prize=0, is_failed=False,
                fifty_fifty_used=False, audience_help_used=False, friend_call_used=False,
                created_at=now or utcnow())
    try:
        db.session.add(game)
        ensure_valid(game)
        for level in QUESTION_LEVELS:
            question = _random_question(level)
            if question is None:
                raise NotEnoughQuestionsError(level)
            slots = [1, 2, 3, 4]
            random.shuffle(slots)
            gq = GameQuestion(game=game, question=question, a=slots[0], b=slots[1], c=slots[2], d=slots[3])
            ensure_valid(gq)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(f"[game-create] game={game.id} user={user.id}")
    notify_game_update(game)
    return game


def finish_game(game: Game, amount: int, failed: bool, now=None) -> None:
    """Close the game and credit `amount` to its owner in one commit."""
    game.prize = amount
    game.finished_at = now or utcnow()
    game.is_failed = failed
    game.user.balance = (game.user.balance or 0) + amount
    try:
        ensure_valid(game)
        db.session.add(game)
        db.session.add(game.user)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(
        f"[finish] game={game.id} status={game.status_at(now)} level={game.current_level} prize={amount}"
    )
    notify_game_update(game)


def time_out(game: Game, now=None) -> bool:
    """Finish an unfinished game that ran past the time limit."""
    if game.finished or not game.timed_out(now):
        return False
    current_app.logger.info(f"[timeout] game={game.id} created_at={game.created_at.isoformat()}")
    finish_game(game, fireproof_prize(game.previous_level), failed=True, now=now)
    return True


def answer_current_question(game: Game, letter: str, now=None) -> bool:
    """Answer the current question; True means the answer was accepted as correct.

    Finished games are left untouched. A late or wrong answer finishes the
    game as failed with the fireproof prize.
    """
    if game.finished or time_out(game, now):
        return False

    question = game.current_game_question
    if not question.answer_correct(letter):
        current_app.logger.info(f"[answer] game={game.id} level={game.current_level} letter={letter!r} correct=False")
        finish_game(game, fireproof_prize(game.previous_level), failed=True, now=now)
        return False

    current_app.logger.info(f"[answer] game={game.id} level={game.current_level} letter={letter!r} correct=True")
    last_level = max(QUESTION_LEVELS)
    if game.current_level == last_level:
        game.current_level += 1
        finish_game(game, PRIZES[last_level], failed=False, now=now)
        return True

    game.current_level += 1
    try:
        ensure_valid(game)
        db.session.add(game)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    notify_game_update(game)
    return True


def take_money(game: Game, now=None) -> bool:
    """Walk away with the prize of the last answered level.

    Returns False when the game was already over (or timed out just now).
    """
    if game.finished or time_out(game, now):
        return False
    current_app.logger.info(f"[take-money] game={game.id} level={game.current_level}")
    finish_game(game, money_prize(game.previous_level), failed=False, now=now)
    return True
