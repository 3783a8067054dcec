import uuid
from datetime import datetime, timezone

from extensions import db


def new_id():
    return uuid.uuid4().hex


def utcnow():
    # Naive UTC, SQLite drops tzinfo anyway
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value):
    return value.isoformat(timespec='milliseconds') + 'Z'


class User(db.Model):                     # Model for storing user credentials
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)   # bcrypt hash, never serialized
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_public(self):
        return {'id': self.id, 'name': self.name, 'email': self.email}

    def __repr__(self):
        return f'<User {self.email}>'


class Task(db.Model):                     # Model for storing the tasks a user owns
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    title = db.Column(db.String(200), nullable=False)   # MAX_TITLE_LENGTH
    description = db.Column(db.Text, nullable=False, default='')
    completed = db.Column(db.Boolean, nullable=False, default=False)
    owner = db.Column(db.String(32), db.ForeignKey('user.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'completed': self.completed,
            'owner': self.owner,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<Task {self.title}>'


# API sort field -> column
TASK_SORT_COLUMNS = {
    'createdAt': Task.created_at,
    'updatedAt': Task.updated_at,
    'title': Task.title,
    'completed': Task.completed,
}

MAX_TITLE_LENGTH = 200
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100
# Keeps (page - 1) * limit inside SQLite's 64-bit INTEGER
MAX_PAGE = (2 ** 63 - 1) // MAX_PAGE_LIMIT
