from flask import Blueprint, request, jsonify, abort
from flask_login import login_user, logout_user, login_required, current_user
from millionaire import db
from millionaire.models import User

main = Blueprint('main', __name__)


@main.route('/')
def index():
    """Leaderboard: players ordered by the money they have won."""
    users = User.query.order_by(User.balance.desc(), User.id).all()
    return jsonify({'users': [u.to_dict() for u in users]})


@main.route('/users/<int:user_id>')
def show_user(user_id):
    user = db.session.get(User, user_id) or abort(404)
    games = user.games.all()
    if not (current_user.is_authenticated and current_user.id == user.id):
        # A running game is only visible to its owner
        games = [g for g in games if g.finished]
    payload = user.to_dict()
    payload['games'] = [g.to_dict() for g in games]
    return jsonify(payload)


@main.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    if not data.get('username') or not data.get('password'):
        return jsonify({'error': 'Missing username or password'}), 400

    if User.query.filter_by(username=data['username']).first():
        return jsonify({'error': 'Username already exists'}), 400

    user = User(username=data['username'], balance=0)
    user.set_password(data['password'])
    db.session.add(user)
    db.session.commit()
    login_user(user)

    return jsonify({'message': 'User created successfully', 'user': user.to_dict()}), 201


@main.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'GET':
        # Target of Flask-Login redirects for anonymous visitors
        return jsonify({'error': 'Please sign in', 'next': request.args.get('next')}), 401
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    user = User.query.filter_by(username=data.get('username')).first()
    if user and user.check_password(data.get('password') or ''):
        login_user(user, remember=True)
        return jsonify({'message': 'Logged in successfully.', 'user': user.to_dict()})
    return jsonify({'error': 'Invalid username or password'}), 401


@main.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'message': 'Logged out successfully.'})
