from .base import *  # noqa: F401, F403

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}

# Run queued tasks inline so triggers are observable in tests
Q_CLUSTER = {
    **Q_CLUSTER,  # noqa: F405
    "name": "rentengine-test",
    "sync": True,
    "orm": "default",
}

BILLING = {
    **BILLING,  # noqa: F405
    "TIME_ZONE": "UTC",
    "RENT_DUE_DAY": 1,
}

# Let engine loggers reach the root handler so tests can capture them
LOGGING = {
    **LOGGING,  # noqa: F405
    "loggers": {
        **LOGGING["loggers"],  # noqa: F405
        "apps": {"level": "DEBUG", "propagate": True},
    },
}
