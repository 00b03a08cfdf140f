# backend/staffing/__init__.py
from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(config_object=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.delegations import delegations_bp
    from .routes.transfers import transfers_bp
    from .routes.employees import employees_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(delegations_bp)
    app.register_blueprint(transfers_bp)
    app.register_blueprint(employees_bp)

    @app.teardown_appcontext
    def remove_session(exception=None):
        db.session.remove()

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
