# File: qr_attendance/__init__.py
"""QR Attendance service - Application Factory."""
import logging
import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)

def create_app(config_name: str = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from qr_attendance.config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    # Setup logging
    setup_logging(app)

    # QR session store
    from qr_attendance.services.session_store import init_session_store
    init_session_store(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Setup database
    setup_database(app)

    # Add CLI commands
    register_commands(app)

    # Add health check
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'QR Attendance',
            'version': '1.0.0'
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from qr_attendance.api.qr import qr_bp

    app.register_blueprint(qr_bp, url_prefix='/api/qr')

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from qr_attendance.utils.helpers import handle_error, error_response
    from werkzeug.exceptions import HTTPException
    from flask_limiter.errors import RateLimitExceeded

    @app.errorhandler(400)
    def bad_request(error):
        return handle_error(error, 400)

    @app.errorhandler(404)
    def not_found(error):
        return handle_error(error, 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return handle_error(error, 405)

    @app.errorhandler(RateLimitExceeded)
    def rate_limited(error):
        return error_response(
            'Too many requests. Please wait before polling again.',
            429,
            retryAfter=error.limit.limit.get_expiry()
        )

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return handle_error(error, 500)

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e, e.code)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return error_response('Token has expired', 401)

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return error_response('Invalid token', 401)

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return error_response('Authorization token required', 401)

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

        app.logger.info('QR Attendance startup')

def setup_database(app: Flask) -> None:
    """Setup database connections."""
    with app.app_context():
        # Import all models so their tables are registered
        from qr_attendance.models import Student, AttendanceRecord  # noqa: F401

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command('seed-db')
    def seed_db():
        """Seed database with demo students."""
        from qr_attendance.services.seed_service import SeedService

        created = SeedService.seed_all()
        click.echo(f'Database seeded: {created} students created.')

    @app.cli.command('import-students')
    @click.argument('csv_path', type=click.Path(exists=True, dir_okay=False))
    def import_students(csv_path):
        """Import students from a CSV file."""
        import pandas as pd
        from qr_attendance.services.student_service import StudentService

        df = pd.read_csv(csv_path, dtype=str).fillna('')
        results = StudentService.import_students(df)

        failed = [r for r in results if not r['success']]
        click.echo(f'Imported {len(results) - len(failed)} of {len(results)} students.')
        for result in failed:
            click.echo(f"  row {result['row']} ({result['name']}): {result['error']}")

    @app.cli.command('purge-sessions')
    def purge_sessions():
        """Drop QR sessions past their retention window."""
        from qr_attendance.services.session_store import get_session_store

        store = get_session_store()
        removed = store.purge_expired()
        click.echo(f'Purged {removed} expired QR sessions.')
