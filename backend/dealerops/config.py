# backend/dealerops/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/dealerops.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///dealerops.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # File storage: buckets are sub-directories of UPLOAD_FOLDER.
    # None means <instance_path>/uploads (resolved in create_app).
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER")
    # Prefix for stored file URLs ("" keeps URLs relative to this API)
    PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "")
    # Hard request cap; per-bucket limits are enforced in storage_service
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_CONTENT_LENGTH", 25 * 1024 * 1024))

    # bcrypt cost factor (tests lower this to keep the suite fast)
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", 12))

    SESSION_ABSOLUTE_HOURS = int(os.environ.get("SESSION_ABSOLUTE_HOURS", 24))
    SESSION_IDLE_HOURS = int(os.environ.get("SESSION_IDLE_HOURS", 2))
