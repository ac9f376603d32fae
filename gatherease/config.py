import os
import json
import logging
import firebase_admin
from firebase_admin import credentials

from gatherease.core.settings import settings

logger = logging.getLogger("gatherease.config")


def init_firebase():
    """Initialize Firebase admin SDK for push delivery.

    Behavior:
    - If FIREBASE_CERT_JSON env var is present, parse it as JSON and use it.
    - Else if the file at settings.firebase_cert_path (FIREBASE_CERT_PATH) exists, use it.
    - Else, do nothing; the push channel then reports itself as not configured.
    """
    try:
        firebase_admin.get_app()
        return
    except ValueError:
        pass

    fb_json = os.environ.get("FIREBASE_CERT_JSON")
    if fb_json:
        try:
            cred = credentials.Certificate(json.loads(fb_json))
            firebase_admin.initialize_app(cred)
            return
        except Exception as e:
            # Fall through to file-based loading which may still work
            logger.warning(f"Failed to init Firebase from FIREBASE_CERT_JSON: {e}")

    fb_path = settings.firebase_cert_path
    if fb_path and os.path.exists(fb_path):
        try:
            cred = credentials.Certificate(fb_path)
            firebase_admin.initialize_app(cred)
            return
        except Exception as e:
            logger.warning(f"Failed to init Firebase from path {fb_path}: {e}")

    logger.info("No Firebase credentials found; push notifications disabled.")
