import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

from gyroplay.models import RoomRegistry

rooms = RoomRegistry()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])
    rooms.init_app(flask_app)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from gyroplay.main import main
    flask_app.register_blueprint(main)

    from gyroplay.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from gyroplay.api.rooms import rooms_api
    flask_app.register_blueprint(rooms_api, url_prefix='/api/rooms')

    # Register Socket.IO event handlers
    from gyroplay.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    @click.command('simulate')
    @click.argument('game_id')
    @click.option('--ticks', default=600, show_default=True, help='Simulation steps to run (60 per second).')
    @click.option('--seed', default=None, type=int, help='Seed for spawn randomness.')
    @click.option('--tilt', default='0,0', show_default=True, help='Constant tilt as "gamma,beta" degrees.')
    @click.option('--action', 'actions', multiple=True, help='Action sent before the first tick (repeatable).')
    def simulate_command(game_id, ticks, seed, tilt, actions):
        """Runs a headless simulation and prints the final state summary."""
        from gyroplay.services.simulate import run_simulation
        try:
            gamma, beta = (float(v) for v in tilt.split(','))
        except ValueError:
            raise click.BadParameter('expected "gamma,beta"', param_hint='--tilt')
        try:
            summary = run_simulation(game_id, ticks=ticks, seed=seed, gamma=gamma, beta=beta, actions=actions)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint='GAME_ID')
        click.echo(summary)

    flask_app.cli.add_command(simulate_command)

    return flask_app
