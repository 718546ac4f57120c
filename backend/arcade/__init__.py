from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
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

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    from arcade.main import main
    flask_app.register_blueprint(main)

    from arcade.api.games import games
    flask_app.register_blueprint(games, url_prefix='/game')
    from arcade.api.battleship import battleship
    flask_app.register_blueprint(battleship, url_prefix='/battleship')
    from arcade.api.simonsay import simonsay
    flask_app.register_blueprint(simonsay, url_prefix='/simonsay')
    from arcade.api.loteria import loteria
    flask_app.register_blueprint(loteria, url_prefix='/loteria')
    from arcade.api.stats import stats
    flask_app.register_blueprint(stats, url_prefix='/stats')

    from arcade.services.games.errors import GameError

    @flask_app.errorhandler(GameError)
    def handle_game_error(exc):
        return jsonify({'error': exc.message}), exc.status_code

    # Bearer tokens only; no session cookie is ever issued
    from arcade.auth import load_user_from_request

    @login_manager.request_loader
    def load_user(request):
        return load_user_from_request(request)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Missing or invalid token'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from arcade.models import User
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = [('Ana', 'ana@example.com'), ('Beto', 'beto@example.com'), ('Carla', 'carla@example.com')]
            for name, email in users:
                user = User(name=name, email=email)
                user.set_password('password')
                db.session.add(user)

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
