"""Test settings for the venue booking project.

Used by pytest-django (see ``[tool.pytest.ini_options]`` in pyproject.toml).
Runs against an in-memory SQLite database with fast password hashing.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

ALLOWED_HOSTS = ['*']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

TIME_ZONE = 'Asia/Kolkata'
VENUES_DEFAULT_TIMEZONE = 'Asia/Kolkata'
VENUES_DEFAULT_OPERATING_HOURS = ('06:00', '23:00')

LOG_JSON = False
LOGGING["handlers"]["console"]["formatter"] = "console"  # noqa: F405
LOGGING["handlers"]["console"]["level"] = "WARNING"  # noqa: F405
