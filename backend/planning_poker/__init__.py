from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from planning_poker.config import Config
from planning_poker.registry import RoomStore

store = RoomStore()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'
    store.init_app(flask_app)
    CORS(flask_app, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from planning_poker.main import main
    flask_app.register_blueprint(main)

    from planning_poker.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # Handlers bind to the initialized socketio instance
    from planning_poker.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    from planning_poker.services.rooms.scheduler import schedule_reaper
    schedule_reaper(flask_app)

    return flask_app
