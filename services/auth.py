# services/auth.py: decorators auth_required / admin_required (Firebase ID token)
from __future__ import annotations

import os
from functools import wraps
from types import SimpleNamespace
from flask import request, jsonify, g

from firebase_admin import auth as fb_auth

from services import firebase_admin_init as fbinit


def _get_bearer(req=None) -> str | None:
    auth = (req if req is not None else request).headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1].strip()
    return None

def _allowlist() -> set[str]:
    allow = os.getenv("ADMIN_UID_ALLOWLIST") or ""
    return {x.strip() for x in allow.split(",") if x.strip()}

def _decode_token(token: str) -> dict:
    fbinit.ensure_firebase_admin()
    return fb_auth.verify_id_token(token, check_revoked=True)

def _dev_bypass() -> bool:
    return os.getenv("DEV_FORCE_ADMIN", "0") == "1" and bool(os.getenv("DEV_FAKE_UID"))

def get_uid_from_bearer(req=None) -> str | None:
    """UID do token (ou None se ausente/inválido). Não levanta."""
    token = _get_bearer(req)
    if not token:
        return None
    try:
        return _decode_token(token).get("uid")
    except Exception:
        return None

def _load_user():
    """Preenche g.user; devolve resposta de erro (401) ou None."""
    token = _get_bearer()
    if not token:
        # Bypass só se explicitamente forçado (nunca em produção)
        if _dev_bypass():
            g.user = SimpleNamespace(uid=os.getenv("DEV_FAKE_UID"), email="dev@local")
            return None
        return jsonify({"ok": False, "error": "Auth obrigatório"}), 401
    try:
        decoded = _decode_token(token)
    except Exception as e:
        return jsonify({"ok": False, "error": f"Token inválido: {e}"}), 401
    uid = decoded.get("uid")
    if not uid:
        return jsonify({"ok": False, "error": "Token inválido (sem UID)"}), 401
    g.user = SimpleNamespace(uid=uid, email=decoded.get("email"))
    return None

def auth_required(fn):
    """Exige Authorization: Bearer <ID_TOKEN Firebase> válido."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        err = _load_user()
        if err:
            return err
        return fn(*args, **kwargs)
    return wrapper

def admin_required(fn):
    """
    Exige:
      - Authorization: Bearer <ID_TOKEN Firebase>
      - UID presente em ADMIN_UID_ALLOWLIST (allowlist vazia = qualquer usuário autenticado)

    Bypass de dev só é permitido se DEV_FORCE_ADMIN == "1" E DEV_FAKE_UID definido.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        err = _load_user()
        if err:
            return err
        allow = _allowlist()
        if allow and getattr(g.user, "uid", None) not in allow:
            return jsonify({"ok": False, "error": "Acesso restrito a administradores"}), 403
        return fn(*args, **kwargs)
    return wrapper

def is_admin_uid(uid: str | None) -> bool:
    if not uid:
        return False
    allow = _allowlist()
    return (not allow) or uid in allow
