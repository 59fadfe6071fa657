from dotenv import load_dotenv
from flask import Flask, send_from_directory
from flasgger import Swagger

from .config import Config, validate_config
from .errors import register_error_handlers
from .extensions import db, migrate, jwt, ma
from .middleware.request_id import init_request_id
from .models.token_blocklist import TokenBlocklist
from .services.photo_storage import PhotoStorage
from .swagger_config import swagger_template

load_dotenv()


def create_app(config_class=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)
    validate_config(app.config)

    Swagger(app, template=swagger_template(app))
    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)
    PhotoStorage.from_app(app)

    # Middleware + errors
    init_request_id(app)
    register_error_handlers(app)

    # Blueprint imports
    from .api.auth.routes import auth_bp
    from .api.sessions.routes import sessions_bp
    from .api.voting.routes import voting_bp
    from .api.questions.routes import questions_bp
    from .pages.routes import pages_bp

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(sessions_bp, url_prefix="/api/sessions")
    app.register_blueprint(voting_bp, url_prefix="/api/sessions")
    app.register_blueprint(questions_bp, url_prefix="/api/questions")
    app.register_blueprint(pages_bp, url_prefix="/vote")

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    # Public photo URLs handed out by PhotoStorage
    @app.get("/media/<path:filename>", endpoint="media")
    def media(filename):
        return send_from_directory(app.config["UPLOAD_FOLDER"], filename)

    # JWT token revocation check
    @jwt.token_in_blocklist_loader
    def is_token_revoked(jwt_header, jwt_payload) -> bool:
        jti = jwt_payload.get("jti")
        if not jti:
            return True
        return TokenBlocklist.is_blocklisted(jti)

    app.logger.info("Application created (config=%s)", config_class.__name__)
    return app
