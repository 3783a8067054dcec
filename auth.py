"""Registration, login and bearer-token verification."""

import logging
from dataclasses import dataclass, field

from flask import current_app
from flask_login import UserMixin
from itsdangerous import BadData, URLSafeTimedSerializer
from sqlalchemy.exc import IntegrityError

from errors import DuplicateIdentity, InvalidCredentials, Unauthenticated
from extensions import bcrypt, db
from models import User
from schemas import LoginRequest, RegisterRequest, parse

logger = logging.getLogger(__name__)

TOKEN_SALT = 'auth-token'

_VERIFIED = object()


@dataclass(frozen=True)
class Identity(UserMixin):
    """A caller whose token has been verified.

    Only this module can build one, so an owner handed to the task service
    always comes from a checked token and never from request input.
    """

    id: str
    name: str
    email: str
    _seal: object = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self._seal is not _VERIFIED:
            raise TypeError('Identity is only issued by the auth service')

    def to_public(self):
        return {'id': self.id, 'name': self.name, 'email': self.email}


def _identity_for(user):
    return Identity(user.id, user.name, user.email, _VERIFIED)


def _serializer():
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=TOKEN_SALT)


def issue_token(user):
    return _serializer().dumps({'id': user.id})


def token_lifetime():
    return current_app.config['TOKEN_MAX_AGE']


def register(name, email, password):
    """Create a user and return ``(token, user)``."""
    data = parse(RegisterRequest, {'name': name, 'email': email, 'password': password})

    if User.query.filter_by(email=data.email).first():
        raise DuplicateIdentity()

    hashed_password = bcrypt.generate_password_hash(data.password).decode('utf-8')
    user = User(name=data.name, email=data.email, password=hashed_password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration of the same email
        db.session.rollback()
        raise DuplicateIdentity() from exc

    logger.info('Registered user %s', user.id)
    return issue_token(user), user


def login(email, password):
    """Check credentials and return ``(token, user)``.

    Unknown email and wrong password fail the same way.
    """
    data = parse(LoginRequest, {'email': email, 'password': password})

    user = User.query.filter_by(email=data.email).first()
    if user is None or not bcrypt.check_password_hash(user.password, data.password):
        logger.info('Failed login attempt')
        raise InvalidCredentials()

    logger.info('User %s logged in', user.id)
    return issue_token(user), user


def verify_token(token):
    """Resolve a bearer token to an Identity or raise Unauthenticated."""
    if not token:
        raise Unauthenticated('No token, authorization denied')
    try:
        payload = _serializer().loads(token, max_age=token_lifetime())
    except BadData as exc:
        # Expired and forged tokens look the same to the caller
        logger.debug('Rejected token: %s', type(exc).__name__)
        raise Unauthenticated('Token is not valid') from exc

    user_id = payload.get('id') if isinstance(payload, dict) else None
    user = db.session.get(User, user_id) if isinstance(user_id, str) else None
    if user is None:
        raise Unauthenticated('Token is not valid')
    return _identity_for(user)


def bearer_token(header):
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    if not header:
        return None
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer':
        return None
    return token.strip() or None
