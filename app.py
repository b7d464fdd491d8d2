# app.py
# Основной файл Flask-приложения с использованием паттерна Application Factory

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import Config
from errors import FashionVoteError
from extensions import db, migrate, socketio
from notifications import SocketIOChannel
from storage import LocalFileStore

# Важно импортировать модели здесь, чтобы Alembic (Migrate) мог их видеть
from models import User, Participant, Designer, Show, Registration, DesignerAssignment, Vote

logger = logging.getLogger(__name__)


def create_app(config_class=Config, overrides=None):
    # Создаем экземпляр приложения
    app = Flask(__name__)
    app.config.from_object(config_class)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    logging.getLogger().setLevel(app.config['LOG_LEVEL'])

    # --- Инициализируем расширения С ПРИЛОЖЕНИЕМ ---
    db.init_app(app)
    migrate.init_app(app, db)
    socketio.init_app(app, async_mode=app.config['SOCKETIO_ASYNC_MODE'])

    # Внешние сервисы, которыми пользуется логика
    app.extensions['event_channel'] = SocketIOChannel(socketio)
    app.extensions['file_store'] = LocalFileStore(
        app.config['UPLOAD_FOLDER'],
        app.config['ALLOWED_IMAGE_EXTENSIONS']
    )

    # --- Регистрируем наши Blueprints (маршруты) ---
    from routes.auth import auth_bp
    from routes.main import main_bp
    from routes.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(admin_bp)

    @app.errorhandler(FashionVoteError)
    def handle_domain_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'error': error.name.upper().replace(' ', '_'), 'message': error.description}), error.code

    @app.cli.command('seed')
    def seed_command():
        """Очищает базу и заполняет её тестовыми данными."""
        from seed_data import seed_demo_data
        seed_demo_data()

    logger.debug("Application created with %s", config_class.__name__)
    return app


if __name__ == '__main__':
    app = create_app()
    socketio.run(app, debug=True)
