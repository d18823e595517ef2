from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from werkzeug.exceptions import HTTPException, InternalServerError
import click
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def register_error_handlers(flask_app):
    from arcade.errors import ArcadeError

    @flask_app.errorhandler(ArcadeError)
    def handle_arcade_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    @flask_app.errorhandler(InternalServerError)
    def handle_internal_error(exc):
        db.session.rollback()
        original = getattr(exc, 'original_exception', None) or exc
        flask_app.logger.error(f"[rollback] unhandled error: {original!r}")
        return jsonify({'success': False, 'error': 'Internal server error'}), 500

    @flask_app.errorhandler(HTTPException)
    def handle_http_error(exc):
        return jsonify({'success': False, 'error': exc.description}), exc.code


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'
    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from arcade.main import main
    flask_app.register_blueprint(main)

    from arcade.api.players import players
    flask_app.register_blueprint(players, url_prefix='/api/players')

    from arcade.api.highscores import highscores
    flask_app.register_blueprint(highscores, url_prefix='/api/highscores')

    from arcade.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api/scores')

    register_error_handlers(flask_app)

    from arcade.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Flask-Login user loader
    from arcade.models import Player

    @login_manager.user_loader
    def load_user(player_id):
        return db.session.get(Player, int(player_id))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from arcade.models import Player
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed demo badges
            for badge_id, name in [('1234567', 'giano'), ('dev-player-001', 'Dev Player'), ('TEST_001', 'TestPlayer')]:
                db.session.add(Player(badge_id=badge_id, name=name))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
