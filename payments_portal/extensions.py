# payments_portal/extensions.py

from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# Extensions are created unbound and attached to an app in create_app()
db = SQLAlchemy()  # Database ORM
migrate = Migrate()  # DB migrations
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)
