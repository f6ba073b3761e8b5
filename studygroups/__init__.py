"""App factory para Study Groups (Flask)."""
from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from flask_jwt_extended import JWTManager
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from .config import Config


db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()
jwt = JWTManager()

WRITE_METHODS = ("POST", "PUT", "PATCH", "DELETE")

def create_app(config_object: type = Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object)
    db.init_app(app); migrate.init_app(app, db)
    login_manager.init_app(app); csrf.init_app(app); jwt.init_app(app)

    from . import models  # noqa: F401  registers tables + user_loader
    from .auth import auth_bp
    from .main import main_bp
    from .groups import groups_bp
    from .admin import admin_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(groups_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/admin")

    @login_manager.unauthorized_handler
    def _unauthorized():
        return jsonify(error="Login required"), 401

    @app.before_request
    def _maintenance_gate():
        if app.config.get("MAINTENANCE_MODE") and request.method in WRITE_METHODS:
            return jsonify(
                error="Maintenance in progress",
                message="Maintenance in progress, please try again soon",
            ), 503

    @app.errorhandler(HTTPException)
    def _http_error(exc):
        return jsonify(error=exc.name, message=exc.description), exc.code

    @app.errorhandler(SQLAlchemyError)
    def _db_error(exc):
        app.logger.exception("Database error on %s %s", request.method, request.path)
        db.session.rollback()
        return jsonify(error="Internal error", message="Something went wrong, please retry."), 500

    @app.cli.command("seed")
    def seed_command():
        from .seed import run_seed; run_seed(); print("Seed listo.")

    @app.cli.command("reset-db")
    def reset_db_command():
        """
        Dev only: resetea la base.
        - Si es SQLite, borra el archivo y crea tablas.
        - Luego corre el seed.
        """
        from pathlib import Path
        uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
        if uri.startswith("sqlite:///"):
            db_path = uri.replace("sqlite:///", "")
            p = Path(app.instance_path) / db_path if not Path(db_path).is_absolute() else Path(db_path)
            with app.app_context():
                db.session.remove()
                db.engine.dispose()
                if p.exists():
                    p.unlink()
                db.create_all()
                from .seed import run_seed
                run_seed()
            print(f"Base SQLite recreada en {p} y seed cargado.")
        else:
            # Fallback para otros engines en dev: drop_all/create_all (sin migraciones)
            with app.app_context():
                db.drop_all()
                db.create_all()
                from .seed import run_seed
                run_seed()
            print("Base recreada (drop_all/create_all) y seed cargado.")

    return app
