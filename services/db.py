# services/db.py
# Cliente Firestore via Firebase Admin, inicialização preguiçosa e helpers
# Uso:
#   from services import db as dbsvc
#   dbsvc.collection("aulas").where("data", "==", "2024-01-01").stream()

from datetime import datetime, timezone
from typing import Optional, Callable, Any

from firebase_admin import firestore as fa_firestore
from google.cloud import firestore as gcfs  # faz parte do firebase_admin

from services import firebase_admin_init as fbinit

# ------------------------
# Utilidades de timestamp
# ------------------------
def now_ts() -> str:
    """Retorna ISO8601 UTC com 'Z' no fim (string)."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

# -----------------------------------
# Client (cacheado; testes substituem _DB)
# -----------------------------------
_DB: Optional[Any] = None

def get_db():
    """Retorna um client do Firestore (cacheado)."""
    global _DB
    if _DB is not None:
        return _DB
    fbinit.ensure_firebase_admin()
    _DB = fa_firestore.client()
    return _DB

def collection(name: str):
    return get_db().collection(name)

def snap_to_dict(snap) -> dict:
    """Documento + id (padrão das respostas da API)."""
    d = snap.to_dict() or {}
    d["id"] = snap.id
    return d

# ------------------------
# Transações
# ------------------------
def run_transaction(fn: Callable[[Any], Any]):
    """
    Executa fn(tx) com o decorator oficial (@transactional): leituras antes
    das escritas, retry do SDK em contenção. O retorno de fn é repassado;
    exceções levantadas dentro de fn abortam a transação.
    """
    client = get_db()
    return gcfs.transactional(fn)(client.transaction())
