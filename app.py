import logging
import os

from flask import Flask, g, jsonify, render_template
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

import auth
from api import api
from config import Config
from errors import InternalFailure, TaskTrackerError, Unauthenticated
from extensions import bcrypt, cors, db, login_manager

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    # Initialize extensions
    db.init_app(app)
    bcrypt.init_app(app)
    login_manager.init_app(app)
    cors.init_app(app, resources={app.config['API_PREFIX'] + '/*': {'origins': app.config['CORS_ORIGINS']}})

    with app.app_context():
        db.create_all()

    app.register_blueprint(api, url_prefix=app.config['API_PREFIX'])
    register_error_handlers(app)

    @app.route('/')   # Browser UI, talks to the JSON API
    def start():
        return render_template('index.html', api_prefix=app.config['API_PREFIX'])

    @app.route('/health')   # Liveness probe
    def health():
        return 'OK', 200, {'Content-Type': 'text/plain; charset=utf-8'}

    logger.debug('App created with %s', config_class.__name__)
    return app


@login_manager.request_loader
def load_identity(request):
    token = auth.bearer_token(request.headers.get('Authorization'))
    try:
        return auth.verify_token(token)
    except Unauthenticated as exc:
        g.auth_error = exc
        return None


@login_manager.unauthorized_handler
def unauthorized():
    raise g.get('auth_error', Unauthenticated())


def register_error_handlers(app):

    @app.errorhandler(TaskTrackerError)
    def handle_task_tracker_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        return jsonify({'message': exc.description}), exc.code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(exc):
        db.session.rollback()
        logger.exception('Database error')
        return jsonify(InternalFailure().to_dict()), InternalFailure.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc):
        logger.exception('Unhandled error')
        return jsonify(InternalFailure().to_dict()), InternalFailure.status_code


if __name__ == "__main__":
    create_app().run(port=int(os.environ.get('PORT', 5000)), debug=os.environ.get('FLASK_DEBUG') == '1')
