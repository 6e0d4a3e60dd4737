import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


class Config:
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DB_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "instance", "labstock.db"),
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    BASE_DIR = BASE_DIR

    # Material photos land here as "<millis>-<random>.<ext>" and are served
    # back under /uploads/.
    IMAGE_UPLOAD_FOLDER = os.getenv(
        "IMAGE_UPLOAD_FOLDER", os.path.join(BASE_DIR, "instance", "uploads")
    )
    IMAGE_ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", 10 * 1024 * 1024))

    DEFAULT_MIN_STOCK = int(os.getenv("DEFAULT_MIN_STOCK", 5))
    RECENT_TRANSACTIONS_LIMIT = int(os.getenv("RECENT_TRANSACTIONS_LIMIT", 5))
    TRANSACTION_HISTORY_LIMIT = int(os.getenv("TRANSACTION_HISTORY_LIMIT", 100))

    LOG_DIR = os.getenv("LOG_DIR", os.path.join(BASE_DIR, "logs"))
