# services/firebase_admin_init.py
# Inicialização única do Firebase Admin SDK (Firestore + Auth).
#
# Ordem das credenciais:
#   1) FIREBASE_CREDENTIALS_JSON (JSON inline, recomendado)
#   2) GOOGLE_APPLICATION_CREDENTIALS (arquivo .json)
#   3) credencial padrão do ambiente (ADC)
# Se a init falhar, levanta RuntimeError("firebase_admin_init_failed").

from __future__ import annotations

import os, json
import logging
import firebase_admin
from firebase_admin import credentials

log = logging.getLogger(__name__)


def _options() -> dict:
    pid = (os.getenv("FIREBASE_PROJECT_ID") or "").strip()
    return {"projectId": pid} if pid else {}


def ensure_firebase_admin() -> firebase_admin.App:
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass  # ainda não inicializado

    try:
        inline = (os.getenv("FIREBASE_CREDENTIALS_JSON") or "").strip()
        if inline:
            log.info("[FIREBASE] Usando FIREBASE_CREDENTIALS_JSON (inline).")
            return firebase_admin.initialize_app(credentials.Certificate(json.loads(inline)), _options())

        path = (os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or "").strip()
        if path:
            log.info("[FIREBASE] Usando GOOGLE_APPLICATION_CREDENTIALS (arquivo).")
            return firebase_admin.initialize_app(credentials.Certificate(path), _options())

        return firebase_admin.initialize_app(options=_options() or None)
    except Exception as e:
        raise RuntimeError("firebase_admin_init_failed") from e
