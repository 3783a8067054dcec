import os


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'change-this-to-a-long-secret')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///tasks.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Bearer token lifetime in seconds
    TOKEN_MAX_AGE = int(os.environ.get('TOKEN_MAX_AGE', 3600))
    BCRYPT_LOG_ROUNDS = int(os.environ.get('BCRYPT_LOG_ROUNDS', 12))

    API_PREFIX = os.environ.get('API_PREFIX', '/api')
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    BCRYPT_LOG_ROUNDS = 4
    LOG_LEVEL = 'DEBUG'
