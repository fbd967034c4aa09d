from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO
import click
import logging
from config import Config

allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def get_game_service():
    """Return the GameService bound to the current Flask app."""
    return current_app.extensions['color_engine']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', logging.INFO))

    origins = flask_app.config.get('CORS_ORIGINS') or allowed_origins
    CORS(flask_app, supports_credentials=True, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    # Game rooms live in memory for the life of the process
    from color_engine.services.games import GameService, GameSettings
    from color_engine.services.games.catalog import load_catalog

    settings = GameSettings.from_config(flask_app.config)
    problems = settings.validate()
    if problems:
        flask_app.logger.warning(f"[settings] invalid game settings, applying defaults: {'; '.join(problems)}")
        settings.apply_defaults()
    catalog = load_catalog(flask_app.config.get('CARD_CATALOG_PATH') or None)
    flask_app.extensions['color_engine'] = GameService(settings, catalog)

    from color_engine.main import main
    flask_app.register_blueprint(main)

    from color_engine.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Register Socket.IO event handlers
    from color_engine.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('catalog-check')
    @click.option('--path', default=None, help='Catalog file to check instead of the configured one.')
    def catalog_check_command(path):
        """Lists catalog cards and reports entries that fail validation."""
        from color_engine.services.games.catalog import validate_definition
        cards = load_catalog(path or flask_app.config.get('CARD_CATALOG_PATH') or None)
        failed = 0
        for card in cards:
            errors = validate_definition(card)
            status = 'ok' if not errors else '; '.join(errors)
            failed += bool(errors)
            click.echo(f'{card.name:<24} {card.color.value:<7} {card.effect:<24} {status}')
        click.echo(f'{len(cards)} cards, {failed} with problems')

    flask_app.cli.add_command(catalog_check_command)

    return flask_app
