from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

# Anonymous requests to protected actions are sent to the login prompt
login_manager.login_view = 'main.login'
login_manager.login_message = 'You need to sign in or sign up before continuing.'
login_manager.login_message_category = 'alert'


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from millionaire.main import main
    flask_app.register_blueprint(main)

    from millionaire.api.games import games
    flask_app.register_blueprint(games, url_prefix='/games')

    from millionaire.api.questions import questions
    flask_app.register_blueprint(questions, url_prefix='/questions')

    # Register Socket.IO event handlers on the initialized socketio instance
    from millionaire.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Flask-Login user loader
    from millionaire.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @flask_app.errorhandler(404)
    def not_found(_exc):
        return jsonify({'error': 'Not found'}), 404

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from millionaire.models import Question, QUESTION_LEVELS
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = ['testuser1', 'testuser2', 'testuser3']
            for u in users:
                user = User(username=u)
                user.set_password('password')
                db.session.add(user)
            admin = User(username='admin', is_admin=True)
            admin.set_password('password')
            db.session.add(admin)

            # Placeholder questions so games can be started
            per_level = flask_app.config.get('SEED_QUESTIONS_PER_LEVEL', 4)
            for level in QUESTION_LEVELS:
                for n in range(per_level):
                    db.session.add(Question(
                        text=f'Placeholder question {n + 1} for level {level}?',
                        level=level,
                        answer1='Right', answer2='Wrong', answer3='Also wrong', answer4='Still wrong',
                    ))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
