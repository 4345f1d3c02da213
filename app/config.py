import json
import logging
import os

import firebase_admin
from firebase_admin import credentials

from app.core.settings import settings

logger = logging.getLogger(__name__)


def is_firebase_initialized() -> bool:
    try:
        firebase_admin.get_app()
        return True
    except ValueError:
        return False


def init_firebase() -> bool:
    """Initialize Firebase admin SDK once per process.

    Behavior:
    - If an app already exists, return immediately.
    - If FIREBASE_CERT_JSON is present, parse it as JSON and use it.
    - Else if FIREBASE_CERT_PATH points to an existing file, use that path.
    - Else, do nothing (avoid raising at import time).

    Returns True when a Firebase app is available afterwards.
    """
    if is_firebase_initialized():
        return True

    fb_json = settings.firebase_cert_json
    if fb_json:
        try:
            cred = credentials.Certificate(json.loads(fb_json))
            firebase_admin.initialize_app(cred)
            logger.info("Firebase initialized from FIREBASE_CERT_JSON")
            return True
        except Exception as e:
            # Fall through to file-based loading which may still work
            logger.error(f"Failed to init Firebase from FIREBASE_CERT_JSON: {e}")

    fb_path = settings.firebase_cert_path
    if fb_path and os.path.exists(fb_path):
        try:
            logger.info(f"Loading Firebase credentials from {fb_path}")
            cred = credentials.Certificate(fb_path)
            firebase_admin.initialize_app(cred)
            logger.info("Firebase initialized successfully")
            return True
        except Exception as e:
            logger.error(f"Failed to init Firebase from path {fb_path}: {e}")

    logger.warning("No Firebase credentials found; skipping Firebase initialization.")
    return False
