from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


class H2HState:
    """Process-wide registries, created once per app and torn down with it."""

    def __init__(self, scheduler, matchmaking, games):
        self.scheduler = scheduler
        self.matchmaking = matchmaking
        self.games = games


def _cors_origins(flask_app):
    origins = flask_app.config.get('CORS_ORIGINS') or '*'
    if origins == ['*']:
        return '*'
    return origins


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    origins = _cors_origins(flask_app)
    CORS(flask_app, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from fan_h2h.services.matches.scheduler import ManualScheduler, SocketIOScheduler
    from fan_h2h.services.matches.broadcast import Broadcaster
    from fan_h2h.services.matches.questions import QuestionSource
    from fan_h2h.services.matches.recorder import MatchRecorder
    from fan_h2h.services.matches.engine import GameManager
    from fan_h2h.services.matchmaking import MatchmakingService

    # Tests drive time by hand; see ManualScheduler.advance
    if flask_app.config.get('TESTING'):
        scheduler = ManualScheduler()
    else:
        scheduler = SocketIOScheduler(socketio, logger=flask_app.logger)
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    games_manager = GameManager(
        flask_app,
        broadcaster=Broadcaster(socketio, namespace=namespace),
        scheduler=scheduler,
        question_source=QuestionSource(flask_app),
        recorder=MatchRecorder(flask_app),
    )
    matchmaking = MatchmakingService(
        scheduler,
        room_ttl=int(flask_app.config.get('ROOM_TTL_SEC', 300)),
        code_length=int(flask_app.config.get('ROOM_CODE_LENGTH', 6)),
        logger=flask_app.logger,
    )
    flask_app.extensions['fan_h2h'] = H2HState(scheduler, matchmaking, games_manager)

    # Import and register blueprints here
    from fan_h2h.main import main
    flask_app.register_blueprint(main)

    from fan_h2h.api.matches import matches
    flask_app.register_blueprint(matches, url_prefix='/api/matches')

    from fan_h2h.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace)

    @click.command('seed-questions')
    def seed_questions_command():
        """Inserts the built-in question set into the question bank."""
        from fan_h2h.services.matches.questions import seed_default_questions
        with flask_app.app_context():
            added = seed_default_questions()
        print(f'Added {added} questions.')

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from fan_h2h.services.matches.questions import seed_default_questions
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            added = seed_default_questions()
        print(f'Database has been reset and seeded with {added} questions!')

    flask_app.cli.add_command(seed_questions_command)
    flask_app.cli.add_command(db_reset_command)

    return flask_app
