from functools import wraps

from flask import Blueprint, jsonify, request, redirect, url_for, flash, current_app
from flask_login import login_required, current_user

from millionaire.models import ANSWER_KEYS, Game
from millionaire.services.games.errors import GameInProgressError, NotEnoughQuestionsError, UnknownHelpTypeError
from millionaire.services.games.helpers import use_help
from millionaire.services.games.prizes import PRIZES, FIREPROOF_LEVELS, format_prize
from millionaire.services.games.progression import create_game_for_user, answer_current_question, take_money as svc_take_money
from millionaire.services.validation import ValidationError


games = Blueprint('games', __name__)


def _param(name):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    return data.get(name) or request.values.get(name)


def _redirect_to_game(game):
    return redirect(url_for('games.show', game_id=game.id))


def _redirect_to_profile():
    return redirect(url_for('main.show_user', user_id=current_user.id))


def own_unfinished_game(view):
    """Load the caller's game for `game_id`, bouncing alien and finished games."""
    @wraps(view)
    def wrapper(game_id, *args, **kwargs):
        game = current_user.games.filter(Game.id == game_id).first()
        if game is None:
            current_app.logger.info(f"[not-your-game] game={game_id} user={current_user.id}")
            flash('This is not your game!', 'alert')
            return redirect(url_for('main.index'))
        if game.finished:
            flash(f'Game #{game.id} is over', 'alert')
            return _redirect_to_profile()
        return view(game, *args, **kwargs)
    return wrapper


@games.route('', methods=['POST'])
@login_required
def create():
    try:
        game = create_game_for_user(current_user)
    except GameInProgressError as exc:
        flash('You have not finished your current game', 'alert')
        return _redirect_to_game(exc.game)
    except (NotEnoughQuestionsError, ValidationError) as exc:
        current_app.logger.warning(f"[game-create-failed] user={current_user.id} error={exc}")
        flash(f'Game could not be created: {exc}', 'alert')
        return redirect(url_for('main.index'))

    flash(f'New game started at {game.created_at:%Y-%m-%d %H:%M}. Good luck!', 'notice')
    return _redirect_to_game(game)


@games.route('/<int:game_id>', methods=['GET'])
@login_required
@own_unfinished_game
def show(game):
    payload = game.to_dict(include_question=True)
    payload['prizes'] = PRIZES
    payload['fireproof_levels'] = FIREPROOF_LEVELS
    return jsonify(payload)


@games.route('/<int:game_id>/answer', methods=['PUT'])
@login_required
@own_unfinished_game
def answer(game):
    letter = str(_param('letter') or '').strip().lower()
    if letter not in ANSWER_KEYS:
        flash('Pick one of the answers A, B, C or D', 'alert')
        return _redirect_to_game(game)

    question = game.current_game_question
    answer_is_correct = answer_current_question(game, letter)

    if not answer_is_correct:
        flash(
            f'Correct answer: {question.correct_answer}. '
            f'Game over, your prize is {format_prize(game.prize)}',
            'alert',
        )
    elif game.status == 'won':
        flash(f'Congratulations! You won {format_prize(game.prize)}', 'success')

    if game.finished:
        return _redirect_to_profile()
    return _redirect_to_game(game)


@games.route('/<int:game_id>/take_money', methods=['PUT'])
@login_required
@own_unfinished_game
def take_money(game):
    svc_take_money(game)
    flash(f'Game over, your prize is {format_prize(game.prize)}', 'warning')
    return _redirect_to_profile()


@games.route('/<int:game_id>/help', methods=['PUT'], endpoint='help')
@login_required
@own_unfinished_game
def apply_help(game):
    try:
        used = use_help(game, _param('help_type'))
    except UnknownHelpTypeError:
        flash('There is no such hint', 'alert')
        return _redirect_to_game(game)

    if used:
        flash('You used a hint', 'info')
    else:
        flash('You have already used this hint', 'alert')
    return _redirect_to_game(game)
