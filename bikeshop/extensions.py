from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager

db = SQLAlchemy()
login_manager = LoginManager()

# JSON API: unauthenticated requests get a 401 instead of a redirect
login_manager.login_view = None
