from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user

from millionaire import db
from millionaire.models import Question
from millionaire.services.validation import ensure_valid, ValidationError


questions = Blueprint('questions', __name__)


@questions.route('', methods=['POST'])
@login_required
def create_question():
    if not current_user.is_admin:
        return jsonify({'error': 'Admins only'}), 403

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    text = data.get('text')
    question = Question(
        text=text.strip() if isinstance(text, str) else text,
        level=data.get('level'),
        answer1=data.get('answer1'),
        answer2=data.get('answer2'),
        answer3=data.get('answer3'),
        answer4=data.get('answer4'),
    )
    try:
        ensure_valid(question)
    except ValidationError as exc:
        return jsonify({'errors': exc.errors}), 422

    db.session.add(question)
    db.session.commit()
    current_app.logger.info(f"[question-create] question={question.id} level={question.level}")
    return jsonify(question.to_dict()), 201


@questions.route('', methods=['GET'])
@login_required
def list_questions():
    if not current_user.is_admin:
        return jsonify({'error': 'Admins only'}), 403
    level = request.args.get('level', type=int)
    query = Question.query.order_by(Question.level, Question.id)
    if level is not None:
        query = query.filter_by(level=level)
    return jsonify([q.to_dict() for q in query.all()])
