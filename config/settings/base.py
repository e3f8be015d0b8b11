import os
from pathlib import Path

import environ

BASE_DIR = Path(__file__).resolve().parent.parent.parent

env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, ["localhost", "127.0.0.1"]),
    CSRF_TRUSTED_ORIGINS=(list, []),
)
environ.Env.read_env(os.path.join(BASE_DIR, ".env"))


# ============================================
# Docker Secrets Support
# ============================================
def get_secret(secret_name, default=None):
    """
    Read secret from Docker secrets or fall back to environment variable.

    Docker secrets are mounted at /run/secrets/<secret_name> in containers.
    """
    secret_path = f"/run/secrets/{secret_name}"
    if os.path.exists(secret_path):
        with open(secret_path) as f:
            return f.read().strip()
    env_key = secret_name.upper().replace("-", "_")
    return os.environ.get(env_key, default)


# ============================================
# Core Django Settings
# ============================================
SECRET_KEY = get_secret("django_secret_key", env("SECRET_KEY", default="insecure-dev-key-change-in-production"))
DEBUG = env("DEBUG")
ALLOWED_HOSTS = env("ALLOWED_HOSTS")

SITE_URL = env("SITE_URL", default="http://localhost:8000")

_csrf_origins = env("CSRF_TRUSTED_ORIGINS", default=[])
if SITE_URL and SITE_URL not in _csrf_origins:
    _csrf_origins.insert(0, SITE_URL)
CSRF_TRUSTED_ORIGINS = _csrf_origins

AUTH_USER_MODEL = "accounts.User"

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third party
    "django_q",
    # Local apps
    "apps.core",
    "apps.accounts",
    "apps.properties",
    "apps.leases",
    "apps.billing",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = env("TIME_ZONE", default="UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage",
    },
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ============================================
# Redis Configuration (optional)
# ============================================
REDIS_URL = env("REDIS_URL", default=None)

if REDIS_URL:
    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": REDIS_URL,
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
            },
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.db.DatabaseCache",
            "LOCATION": "django_cache",
        }
    }

# ============================================
# Django-Q2 Task Queue
# ============================================
Q_CLUSTER = {
    "name": "rentengine",
    "workers": env.int("Q_WORKERS", default=2),
    "recycle": 500,
    "timeout": env.int("Q_TIMEOUT", default=1800),
    "retry": env.int("Q_RETRY", default=3600),
    "queue_limit": 50,
    "bulk": 10,
    "catch_up": False,
}

# Use Redis broker when available, otherwise fall back to ORM
if REDIS_URL:
    Q_CLUSTER["redis"] = REDIS_URL
else:
    Q_CLUSTER["orm"] = "default"

# ============================================
# Billing Engine
# ============================================
# The cron expression is evaluated by Django-Q2 in TIME_ZONE.
BILLING = {
    "TIME_ZONE": env("BILLING_TIME_ZONE", default=TIME_ZONE),
    "RENT_DUE_DAY": env.int("BILLING_RENT_DUE_DAY", default=1),
    "SCHEDULE_CRON": env("BILLING_SCHEDULE_CRON", default="30 0 1 * *"),
    "LOCK_TTL_SECONDS": env.int("BILLING_LOCK_TTL_SECONDS", default=3600),
    "MAX_LOGGED_ERRORS": env.int("BILLING_MAX_LOGGED_ERRORS", default=10),
    "UPCOMING_HORIZON_DAYS": env.int("BILLING_UPCOMING_HORIZON_DAYS", default=30),
    "LONG_TERM_VACANCY_DAYS": env.int("BILLING_LONG_TERM_VACANCY_DAYS", default=45),
    "JOB_LOG_RETENTION_DAYS": env.int("BILLING_JOB_LOG_RETENTION_DAYS", default=90),
}

# Login URLs
LOGIN_URL = "/django-admin/login/"

# Logging
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {process:d} {thread:d} {message}",
            "style": "{",
        },
        "simple": {
            "format": "{levelname} {asctime} {module} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "INFO",
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": env("DJANGO_LOG_LEVEL", default="INFO"),
            "propagate": False,
        },
        "django.security": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
        "django_q": {
            "handlers": ["console"],
            "level": env("Q_LOG_LEVEL", default="INFO"),
            "propagate": False,
        },
        "apps": {
            "handlers": ["console"],
            "level": env("APPS_LOG_LEVEL", default="INFO"),
            "propagate": False,
        },
    },
}
