import os

from dotenv import load_dotenv

load_dotenv()

_TRUE = {'1', 'true', 'yes', 'on'}


def env_bool(name, default=False):
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE


def env_int(name, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY') or os.urandom(24)
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///bookify.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Auth
    JWT_SECRET = os.getenv('JWT_SECRET', 'change-me')
    JWT_ALGORITHM = 'HS256'
    JWT_EXPIRES_DAYS = env_int('JWT_EXPIRES_DAYS', 7)

    FRONTEND_DOMAIN = os.getenv('FRONTEND_DOMAIN', '*')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    # Uploads: 100MB per file, three files per request at most
    MAX_UPLOAD_SIZE = env_int('MAX_UPLOAD_SIZE', 100 * 1024 * 1024)
    MAX_CONTENT_LENGTH = env_int('MAX_CONTENT_LENGTH', 3 * MAX_UPLOAD_SIZE)
    UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER', os.path.join(os.getcwd(), 'uploads'))

    # Media storage: "cloudinary" or "local"
    MEDIA_BACKEND = os.getenv('MEDIA_BACKEND', 'cloudinary')
    CLOUDINARY_CLOUD_NAME = os.getenv('CLOUDINARY_CLOUD_NAME')
    CLOUDINARY_API_KEY = os.getenv('CLOUDINARY_API_KEY')
    CLOUDINARY_API_SECRET = os.getenv('CLOUDINARY_API_SECRET')
    MEDIA_TIMEOUT = env_int('MEDIA_TIMEOUT', 120)
    MEDIA_RETRIES = env_int('MEDIA_RETRIES', 3)

    # Mail
    MAIL_SERVER = os.getenv('MAIL_SERVER', 'smtp.gmail.com')
    MAIL_PORT = env_int('MAIL_PORT', 587)
    MAIL_USE_TLS = env_bool('MAIL_USE_TLS', True)
    MAIL_USE_SSL = env_bool('MAIL_USE_SSL', False)
    MAIL_USERNAME = os.getenv('MAIL_USER')
    MAIL_PASSWORD = os.getenv('MAIL_PASS')
    MAIL_DEFAULT_SENDER = os.getenv('MAIL_DEFAULT_SENDER') or MAIL_USERNAME
    MAIL_TIMEOUT = env_int('MAIL_TIMEOUT', 30)
    MAIL_RETRIES = env_int('MAIL_RETRIES', 2)
    MAIL_SUPPRESS_SEND = env_bool('MAIL_SUPPRESS_SEND', False)
    ADMIN_EMAIL = os.getenv('ADMIN_EMAIL')

    # Seconds before the first retry of an external call, doubled each attempt
    RETRY_BACKOFF = float(os.getenv('RETRY_BACKOFF', '1.0'))


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    JWT_SECRET = 'test-jwt-secret'
    MEDIA_BACKEND = 'local'
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = 'bookify@example.com'
    ADMIN_EMAIL = 'admin@example.com'
    RETRY_BACKOFF = 0
    LOG_LEVEL = 'WARNING'
