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


def _allowed_origins(config) -> object:
    origins = config.get('CORS_ORIGINS') or ['*']
    return '*' if '*' in origins else origins


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _allowed_origins(flask_app.config)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(
        flask_app,
        cors_allowed_origins=allowed_origins,
        async_mode=flask_app.config.get('SOCKETIO_ASYNC_MODE', 'threading'),
    )

    from exquisite.main import main
    flask_app.register_blueprint(main)

    # Mount game and drawing routes under /api to match the frontend API client
    from exquisite.api.games import games
    from exquisite.api.drawings import drawings
    flask_app.register_blueprint(games, url_prefix='/api')
    flask_app.register_blueprint(drawings, url_prefix='/api')

    from exquisite.errors import register_error_handlers
    register_error_handlers(flask_app)

    from exquisite.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    @click.option('--seed', is_flag=True, help='Create an open demo room after resetting.')
    def db_reset_command(seed):
        """Drops and recreates the database, optionally seeding a demo room."""
        from exquisite.models import Game
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            if seed:
                game = Game(
                    game_code='DEMO',
                    games_parts=['head', 'body', 'legs'],
                    drawing_time=60,
                    join=True,
                    start_game=False,
                )
                db.session.add(game)
                db.session.commit()
            click.echo('Database has been reset' + (' and seeded!' if seed else '!'))

    flask_app.cli.add_command(db_reset_command)

    return flask_app
