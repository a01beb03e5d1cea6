import logging

from flask import Flask
from app.extensions import db
from config import Config


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    logging.getLogger('app').setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions
    db.init_app(app)

    # One store per app, handed to the services by the routes
    from app.storage import build_store
    app.extensions['rosca_store'] = build_store(app.config)

    # Register blueprints
    from app.routes.users import users_bp
    from app.routes.groups import groups_bp
    from app.routes.members import members_bp
    from app.routes.periods import periods_bp
    from app.routes.errors import register_error_handlers

    app.register_blueprint(users_bp)
    app.register_blueprint(groups_bp)
    app.register_blueprint(members_bp)
    app.register_blueprint(periods_bp)
    register_error_handlers(app)

    from app.seed import seed_demo_command
    app.cli.add_command(seed_demo_command)

    if app.config['ROSCA_STORAGE'] == 'sql':
        from app import models  # noqa: F401  (registers the tables)
        with app.app_context():
            db.create_all()
            app.logger.info("Database tables created")

    return app
