from .base import *  # noqa: F401, F403

DEBUG = True

# ============================================
# Database Configuration
# Support both SQLite (local) and PostgreSQL (Docker)
# ============================================
if env("DATABASE_URL", default=None):  # noqa: F405
    DATABASES = {"default": env.db("DATABASE_URL")}  # noqa: F405
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",  # noqa: F405
        }
    }

# WhiteNoise in dev serves files without collectstatic
STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}
