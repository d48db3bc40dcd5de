# bookverse/__init__.py

# =====================================================================================
# 1. Environment variables (loaded first)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. Module imports
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials

# - config
from bookverse.core.config import config_by_name

# - API blueprints
from bookverse.api.auth.routes import auth_bp
from bookverse.api.users.routes import users_bp
from bookverse.api.friends.routes import friends_bp
from bookverse.api.posts.routes import posts_bp
from bookverse.api.comments.routes import comments_bp
from bookverse.api.books.routes import books_bp
from bookverse.api.clubs.routes import clubs_bp
from bookverse.api.chat.routes import chat_bp
from bookverse.api.notifications.routes import notifications_bp

# - services
from bookverse.services.notification_service import NotificationService
from bookverse.services.openai_service import OpenAIService
from bookverse.services.catalog_service import CatalogService
from bookverse.api.auth.services import auth_service
from bookverse.api.users.services import UserService
from bookverse.api.friends.services import FriendService
from bookverse.api.posts.services import PostService
from bookverse.api.comments.services import CommentService
from bookverse.api.books.services import BookService
from bookverse.api.clubs.services import ClubService
from bookverse.api.chat.services import ChatService
from bookverse.scoring.feed_ranking import RankingWeights


def create_app():
    """
    Flask application factory.
    """
    # =====================================================================================
    # 3. Flask app and base config
    # =====================================================================================
    config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. Extensions and external services
    # =====================================================================================
    jwt = JWTManager(app)

    if not firebase_admin._apps:
        cred_path = app.config.get('FIREBASE_CREDENTIALS_PATH')
        if not cred_path or not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase credentials file not found: {cred_path}")
        firebase_admin.initialize_app(credentials.Certificate(cred_path))

    # =====================================================================================
    # 5. Services, stored on 'app.services' (dependency injection)
    # =====================================================================================
    app.services = {}

    # 5-1. shared services other services depend on
    try:
        openai_instance = OpenAIService()
        openai_instance.init_app(app)
        app.services['openai'] = openai_instance
        logging.info("OpenAI service initialized successfully")
    except Exception as e:
        logging.error(f"Failed to initialize OpenAI service: {e}")
        raise

    catalog_instance = CatalogService()
    catalog_instance.init_app(app)
    app.services['catalog'] = catalog_instance

    auth_service.init_app(app)
    app.services['auth'] = auth_service
    app.services['notifications'] = NotificationService()

    # 5-2. domain services
    app.services['users'] = UserService()
    app.services['friends'] = FriendService(notification_service=app.services['notifications'])
    app.services['posts'] = PostService(
        notification_service=app.services['notifications'],
        ranking_weights=RankingWeights.from_config(app.config),
        fetch_limit=app.config['FEED_FETCH_LIMIT']
    )
    app.services['comments'] = CommentService(
        ai_service=app.services['openai'],
        notification_service=app.services['notifications']
    )
    app.services['books'] = BookService(catalog_service=app.services['catalog'])
    app.services['clubs'] = ClubService(comment_service=app.services['comments'])
    app.services['chat'] = ChatService(
        ai_service=app.services['openai'],
        notification_service=app.services['notifications']
    )

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        return app.services['auth'].is_token_revoked(jwt_payload)

    # =====================================================================================
    # 6. Blueprints
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(friends_bp, url_prefix='/api/friends')
    app.register_blueprint(posts_bp, url_prefix='/api/posts')
    app.register_blueprint(books_bp, url_prefix='/api/books')
    app.register_blueprint(comments_bp, url_prefix='/api/books')
    app.register_blueprint(clubs_bp, url_prefix='/api/clubs')
    app.register_blueprint(chat_bp, url_prefix='/api/chat')
    app.register_blueprint(notifications_bp, url_prefix='/api/notifications')

    # =====================================================================================
    # 7. Global error handlers
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # anything no other handler caught
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "An unexpected server error occurred."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. Logging
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
