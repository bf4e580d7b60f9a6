from datetime import timedelta

import pytest

from millionaire import db
from millionaire.models import Question, GameQuestion, HelpType, QUESTION_LEVELS, utcnow
from millionaire.services.validation import ensure_valid, ValidationError
from conftest import create_game_with_questions


def _question(**overrides):
    attrs = dict(text='Which planet is known as the Red Planet?', level=0,
                 answer1='Mars', answer2='Venus', answer3='Jupiter', answer4='Saturn')
    attrs.update(overrides)
    return Question(**attrs)


# --- Question validation ---

def test_question_valid(flask_app):
    assert _question().validate() == {}


def test_question_requires_text(flask_app):
    assert "can't be blank" in _question(text='').validate()['text']
    assert "can't be blank" in _question(text=None).validate()['text']


def test_question_text_is_unique(flask_app):
    db.session.add(_question())
    db.session.commit()
    errors = _question(level=3).validate()
    assert errors['text'] == ['has already been taken']


def test_question_requires_level(flask_app):
    assert "can't be blank" in _question(level=None).validate()['level']


@pytest.mark.parametrize('level', [0, 7, 14])
def test_question_allows_levels_in_range(flask_app, level):
    assert 'level' not in _question(level=level).validate()


@pytest.mark.parametrize('level', [-1, 15, '3'])
def test_question_rejects_levels_out_of_range(flask_app, level):
    assert 'level' in _question(level=level).validate()


def test_question_requires_all_answers(flask_app):
    errors = _question(answer3='  ').validate()
    assert list(errors) == ['answer3']


def test_ensure_valid_raises_structured_errors(flask_app):
    with pytest.raises(ValidationError) as excinfo:
        ensure_valid(_question(text='', level=15))
    assert set(excinfo.value.errors) == {'text', 'level'}


# --- GameQuestion ---

@pytest.fixture()
def game_question(flask_app):
    game = create_game_with_questions()
    gq = game.game_questions[0]
    gq.a, gq.b, gq.c, gq.d = 2, 1, 4, 3
    db.session.commit()
    return gq


def test_variants_follow_stored_permutation(game_question):
    q = game_question.question
    assert game_question.variants == {'a': q.answer2, 'b': q.answer1, 'c': q.answer4, 'd': q.answer3}


def test_answer_correct(game_question):
    assert game_question.answer_correct('b')
    assert game_question.answer_correct('B')
    assert not game_question.answer_correct('a')
    assert not game_question.answer_correct(None)


def test_correct_answer_key_and_text(game_question):
    assert game_question.correct_answer_key == 'b'
    assert game_question.correct_answer == game_question.question.answer1


def test_text_and_level_delegate_to_question(game_question):
    assert game_question.text == game_question.question.text
    assert game_question.level == game_question.question.level


def test_help_hash_persists(game_question):
    assert game_question.help_hash == {}
    game_question.set_help(HelpType.FIFTY_FIFTY, ['a', 'b'])
    game_question.set_help('friend_call', 'Sam thinks the answer is B')
    db.session.commit()

    gq = db.session.get(GameQuestion, game_question.id)
    db.session.refresh(gq)
    assert gq.help_hash == {'fifty_fifty': ['a', 'b'], 'friend_call': 'Sam thinks the answer is B'}


def test_help_hash_rejects_unknown_kind_and_bad_payload(game_question):
    with pytest.raises(ValueError):
        game_question.set_help('some_key', 'blabla')
    with pytest.raises(TypeError):
        game_question.set_help(HelpType.AUDIENCE_HELP, ['a'])
    assert game_question.help_hash == {}


def test_game_question_validation(game_question):
    assert game_question.validate() == {}
    game_question.d = 2
    assert 'base' in game_question.validate()
    game_question.d = 5
    assert 'd' in game_question.validate()


# --- Game status ---

@pytest.fixture()
def finished_game(game_w_questions):
    game_w_questions.finished_at = utcnow()
    assert game_w_questions.finished
    return game_w_questions


def test_status_in_progress(game_w_questions):
    assert game_w_questions.status == 'in_progress'
    assert not game_w_questions.finished


def test_status_won(finished_game):
    finished_game.current_level = max(QUESTION_LEVELS) + 1
    assert finished_game.status == 'won'


def test_status_fail(finished_game):
    finished_game.is_failed = True
    assert finished_game.status == 'fail'


def test_status_timeout(finished_game):
    finished_game.created_at = utcnow() - timedelta(hours=1)
    finished_game.is_failed = True
    assert finished_game.status == 'timeout'


def test_status_money(finished_game):
    assert finished_game.status == 'money'


def test_game_has_fifteen_ordered_questions(game_w_questions):
    assert [gq.level for gq in game_w_questions.game_questions] == list(QUESTION_LEVELS)
    assert game_w_questions.current_game_question.level == 0
    assert game_w_questions.previous_game_question is None


def test_game_validation(game_w_questions):
    assert game_w_questions.validate() == {}
    game_w_questions.prize = 2_000_000
    game_w_questions.current_level = 16
    assert set(game_w_questions.validate()) == {'prize', 'current_level'}
