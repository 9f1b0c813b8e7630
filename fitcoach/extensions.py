# fitcoach/extensions.py
from flask_sqlalchemy import SQLAlchemy

from fitcoach.utils.user_lock import UserLock

db = SQLAlchemy()
user_lock = UserLock(namespace="fitcoach")
