import random
from typing import Dict, List, Sequence

from flask import current_app

from millionaire import db
from millionaire.models import ANSWER_KEYS, Game, GameQuestion, HelpType
from .errors import GameFinishedError, UnknownHelpTypeError
from .progression import notify_game_update

FRIENDS = ['Alex', 'Sam', 'Jordan', 'Taylor', 'Morgan', 'Casey', 'Robin', 'Jamie']

# Chance that the friend on the phone names the right answer
FRIEND_ACCURACY = 0.8


def audience_distribution(keys: Sequence[str], correct_key: str) -> Dict[str, int]:
    """Percent of the audience voting for each of a-d.

    Only `keys` receive votes; the correct key gets a head start so it
    usually, though not always, wins the vote.
    """
    weights = {key: random.randint(0, 45) for key in keys}
    if correct_key in weights:
        weights[correct_key] += random.randint(20, 55)
    total = sum(weights.values()) or 1

    votes = {key: 0 for key in ANSWER_KEYS}
    for key, weight in weights.items():
        votes[key] = weight * 100 // total
    # Rounding leftovers go to the leader so the votes add up to 100
    leader = max(weights, key=weights.get)
    votes[leader] += 100 - sum(votes.values())
    return votes


def friend_call(keys: Sequence[str], correct_key: str) -> str:
    if correct_key in keys and random.random() < FRIEND_ACCURACY:
        key = correct_key
    else:
        others = [k for k in keys if k != correct_key] or list(keys)
        key = random.choice(others)
    return f"{random.choice(FRIENDS)} thinks the answer is {key.upper()}"


def fifty_fifty(correct_key: str) -> List[str]:
    wrong = random.choice([k for k in ANSWER_KEYS if k != correct_key])
    return sorted([correct_key, wrong])


def keys_in_play(game_question: GameQuestion) -> List[str]:
    """Letters not yet removed by a 50/50 hint."""
    remaining = game_question.help_hash.get(HelpType.FIFTY_FIFTY.value)
    return list(remaining) if remaining else list(ANSWER_KEYS)


def apply_help(game_question: GameQuestion, help_type: HelpType) -> None:
    """Compute the payload for `help_type` and store it on the question."""
    correct = game_question.correct_answer_key
    if help_type is HelpType.FIFTY_FIFTY:
        payload = fifty_fifty(correct)
    elif help_type is HelpType.AUDIENCE_HELP:
        payload = audience_distribution(keys_in_play(game_question), correct)
    else:
        payload = friend_call(keys_in_play(game_question), correct)
    game_question.set_help(help_type, payload)


def use_help(game: Game, help_type) -> bool:
    """Spend one hint on the current question.

    Returns False if this kind of hint was already used in the game.
    """
    kind = HelpType.parse(help_type)
    if kind is None:
        raise UnknownHelpTypeError(f"unknown help type: {help_type!r}")
    if game.finished:
        raise GameFinishedError(f"game #{game.id} is finished")
    if game.help_used(kind):
        return False

    setattr(game, f'{kind.value}_used', True)
    game_question = game.current_game_question
    apply_help(game_question, kind)
    try:
        db.session.add(game)
        db.session.add(game_question)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"[help] game={game.id} level={game.current_level} type={kind.value}")
    notify_game_update(game)
    return True
