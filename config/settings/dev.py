"""Development settings for the venue booking project.

This module extends the base settings with development specific
configuration, such as enabling debug, allowing all hosts and using a
human readable log renderer. Do not use these settings in production!
"""

from .base import *  # noqa: F401,F403

# Enable debug mode for development
DEBUG = True

# Allow all hosts in development
ALLOWED_HOSTS = ['*']

# Console renderer instead of JSON lines
LOG_JSON = False
LOGGING["handlers"]["console"]["formatter"] = "console"  # noqa: F405

# Plain static storage so runserver works without collectstatic
STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}
