from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import credentials

logger = logging.getLogger(__name__)


def init_firebase(credentials_path: str | None, project_id: str | None) -> firebase_admin.App:
    """Return the default Firebase app, initializing it on first use.

    Without a service-account file the application default credentials are
    used, which also covers the Firestore emulator.
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    if credentials_path:
        cred = credentials.Certificate(credentials_path)
    else:
        cred = credentials.ApplicationDefault()
    options = {"projectId": project_id} if project_id else None
    app = firebase_admin.initialize_app(cred, options)
    logger.info("Firebase app initialized (project=%s)", project_id or "default")
    return app
