"""
Extension singletons shared by the sales app.

Bound in create_app(). The SQLAlchemy instance serves both stores: the
relational store on the default bind and the credential store on the
"credentials" bind. Each bind gets one engine, created on first use and
reused for the lifetime of the process.
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()

# Only the login and register forms are limited, per route
limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")

login_manager = LoginManager()
login_manager.login_view = "auth.login"
login_manager.login_message = "Please sign in to continue."
login_manager.login_message_category = "info"
login_manager.session_protection = "strong"


@login_manager.user_loader
def load_user(user_id):
    from fluxx.models.user import User

    return db.session.get(User, user_id)
