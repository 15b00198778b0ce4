from flask import Flask
from flasgger import Swagger

from .config import Config
from .errors import register_error_handlers
from .extensions import data, identity, rate_limiter
from .middleware.request_id import configure_logging, init_request_id
from .middleware.session_gate import init_session_gate
from .security.csrf import init_csrf
from .swagger_config import swagger_template


def create_app(config_class=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)
    Swagger(app, template=swagger_template(app))

    # Extensions
    identity.init_app(app)
    data.init_app(app)
    rate_limiter.init_app(app)

    # Middleware (request id first so gate logs carry it) + errors
    init_request_id(app)
    init_session_gate(app)
    init_csrf(app)
    register_error_handlers(app)

    # Blueprint imports
    from .api.auth.routes import auth_bp
    from .api.poll.routes import polls_bp
    from .api.csrf.routes import csrf_bp

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(polls_bp, url_prefix="/api/polls")
    app.register_blueprint(csrf_bp, url_prefix="/api/csrf")

    @app.get("/")
    def index():
        return {"name": "polly", "status": "ok"}, 200

    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    return app
