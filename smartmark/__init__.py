from flask import Flask

from smartmark.api import api_bp
from smartmark.config import Config
from smartmark.extensions import db, migrate


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    db.init_app(app)
    migrate.init_app(app, db)

    app.register_blueprint(api_bp)

    @app.cli.command("init-db")
    def init_db_command():
        db.create_all()
        print("Initialized Smartmark database.")

    with app.app_context():
        db.create_all()

    return app
