from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
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
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from courtside.main import main
    flask_app.register_blueprint(main)

    from courtside.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from courtside.api.clock import clock
    flask_app.register_blueprint(clock, url_prefix='/api/timer')

    from courtside.api.possessions import possessions
    flask_app.register_blueprint(possessions, url_prefix='/api/possessions')

    from courtside.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from courtside.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Authentication required'}), 401

    @flask_app.errorhandler(HTTPException)
    def http_error(exc):
        return jsonify({'error': exc.description}), exc.code

    @flask_app.errorhandler(Exception)
    def unexpected_error(exc):
        db.session.rollback()
        flask_app.logger.exception(f"[server-error] {exc}")
        return jsonify({'error': 'Internal server error'}), 500

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from courtside.models import Game, Team
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            for username, role in (('admin', 'admin'), ('coach', 'coach')):
                user = User(username=username, role=role)
                user.set_password('password')
                db.session.add(user)
            home, away = Team(name='Home Club'), Team(name='Away Club')
            db.session.add_all([home, away])
            db.session.flush()
            db.session.add(Game(
                home_team_id=home.id,
                away_team_id=away.id,
                number_of_periods=flask_app.config['DEFAULT_NUMBER_OF_PERIODS'],
                period_duration=flask_app.config['DEFAULT_PERIOD_DURATION_SEC'],
            ))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
