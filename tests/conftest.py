# tests/conftest.py
# Firestore e Firebase Auth em memória para os testes de services/ e routes/.

import copy
import itertools

import pytest
from firebase_admin import auth as fb_auth

from services import db as dbsvc
from services import firebase_admin_init as fbinit

_ids = itertools.count(1)


# ------------------------------------------------------------
# Firestore fake
# ------------------------------------------------------------
class FakeSnapshot:
    def __init__(self, ref, data):
        self.reference = ref
        self.id = ref.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocRef:
    def __init__(self, client, col, doc_id):
        self._client = client
        self._col = col
        self.id = doc_id

    def _store(self):
        return self._client.store.setdefault(self._col, {})

    def get(self, transaction=None):
        return FakeSnapshot(self, copy.deepcopy(self._store().get(self.id)))

    def set(self, data, merge=False):
        store = self._store()
        if merge and self.id in store:
            store[self.id].update(copy.deepcopy(data))
        else:
            store[self.id] = copy.deepcopy(data)

    def update(self, data):
        store = self._store()
        if self.id not in store:
            raise KeyError(f"{self._col}/{self.id} não existe")
        store[self.id].update(copy.deepcopy(data))

    def delete(self):
        self._store().pop(self.id, None)


_OPS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
    "in": lambda a, b: a in b,
    "array_contains": lambda a, b: isinstance(a, list) and b in a,
}


class FakeQuery:
    def __init__(self, client, col, filters=(), order=None, lim=None):
        self._client = client
        self._col = col
        self._filters = tuple(filters)
        self._order = order
        self._lim = lim

    def where(self, field, op, value):
        return FakeQuery(self._client, self._col, self._filters + ((field, op, value),), self._order, self._lim)

    def order_by(self, field, direction="ASCENDING"):
        return FakeQuery(self._client, self._col, self._filters, (field, direction), self._lim)

    def limit(self, n):
        return FakeQuery(self._client, self._col, self._filters, self._order, n)

    def stream(self):
        rows = []
        for doc_id, data in self._client.store.get(self._col, {}).items():
            ok = True
            for field, op, value in self._filters:
                if field not in data or not _OPS[op](data[field], value):
                    ok = False
                    break
            if ok:
                rows.append((doc_id, data))
        if self._order:
            field, direction = self._order
            rows = [r for r in rows if field in r[1]]
            rows.sort(key=lambda r: r[1][field], reverse=(direction == "DESCENDING"))
        if self._lim is not None:
            rows = rows[: self._lim]
        for doc_id, data in rows:
            yield FakeSnapshot(FakeDocRef(self._client, self._col, doc_id), copy.deepcopy(data))

    def get(self):
        return list(self.stream())


class FakeCollection(FakeQuery):
    def __init__(self, client, col):
        super().__init__(client, col)

    def document(self, doc_id=None):
        return FakeDocRef(self._client, self._col, doc_id or f"doc{next(_ids):05d}")


class FakeTransaction:
    def __init__(self):
        self._writes = []

    def set(self, ref, data, merge=False):
        data = copy.deepcopy(data)
        self._writes.append(lambda: ref.set(data, merge=merge))

    def update(self, ref, data):
        data = copy.deepcopy(data)
        self._writes.append(lambda: ref.update(data))

    def delete(self, ref):
        self._writes.append(ref.delete)

    def commit(self):
        for w in self._writes:
            w()


class FakeFirestore:
    def __init__(self):
        self.store = {}

    def collection(self, name):
        return FakeCollection(self, name)

    def transaction(self):
        return FakeTransaction()

    # helpers de teste
    def seed(self, col, doc_id, data):
        self.store.setdefault(col, {})[doc_id] = copy.deepcopy(data)

    def docs(self, col):
        return copy.deepcopy(self.store.get(col, {}))


def _run_transaction(fn):
    """Escritas só valem se fn terminar sem exceção (como @transactional)."""
    tx = dbsvc.get_db().transaction()
    result = fn(tx)
    tx.commit()
    return result


@pytest.fixture
def fake_db(monkeypatch):
    fdb = FakeFirestore()
    monkeypatch.setattr(dbsvc, "_DB", fdb)
    monkeypatch.setattr(dbsvc, "run_transaction", _run_transaction)
    return fdb


# ------------------------------------------------------------
# Firebase Auth fake
# ------------------------------------------------------------
class FakeUser:
    def __init__(self, uid, email, display_name=None):
        self.uid = uid
        self.email = email
        self.display_name = display_name


class FakeAuth:
    def __init__(self):
        self.users = {}

    def create_user(self, email=None, password=None, display_name=None, **kwargs):
        if any(u.email == email for u in self.users.values()):
            raise fb_auth.EmailAlreadyExistsError("email já existe", None, None)
        uid = f"uid{len(self.users) + 1}"
        self.users[uid] = FakeUser(uid, email, display_name)
        return self.users[uid]

    def get_user(self, uid):
        if uid not in self.users:
            raise fb_auth.UserNotFoundError("não encontrado", None, None)
        return self.users[uid]

    def get_user_by_email(self, email):
        for u in self.users.values():
            if u.email == email:
                return u
        raise fb_auth.UserNotFoundError("não encontrado", None, None)

    def update_user(self, uid, email=None, **kwargs):
        user = self.get_user(uid)
        if email and any(u.email == email and u.uid != uid for u in self.users.values()):
            raise fb_auth.EmailAlreadyExistsError("email já existe", None, None)
        if email:
            user.email = email
        return user

    def delete_user(self, uid):
        self.get_user(uid)
        del self.users[uid]


@pytest.fixture
def fake_auth(monkeypatch):
    fa = FakeAuth()
    monkeypatch.setattr(fbinit, "ensure_firebase_admin", lambda: None)
    for nome in ("create_user", "get_user", "get_user_by_email", "update_user", "delete_user"):
        monkeypatch.setattr(fb_auth, nome, getattr(fa, nome))
    return fa


# ------------------------------------------------------------
# Flask
# ------------------------------------------------------------
@pytest.fixture
def client(fake_db, fake_auth, monkeypatch):
    monkeypatch.setenv("DEV_FORCE_ADMIN", "1")
    monkeypatch.setenv("DEV_FAKE_UID", "dev-uid")
    monkeypatch.delenv("ADMIN_UID_ALLOWLIST", raising=False)
    from app import app
    app.config["TESTING"] = True
    return app.test_client()


# ------------------------------------------------------------
# Dados
# ------------------------------------------------------------
def dias(ativos=(1, 3, 5), inicio="08:00", fim="22:00", intervalo=60):
    return [
        {"ativo": d in ativos, "inicio": inicio, "fim": fim, "intervaloMinutos": intervalo}
        for d in range(7)
    ]


@pytest.fixture
def agenda_detalhada():
    """Domingo inativo, quarta 08:00–12:00/30min, demais dias úteis 07:00–21:00."""
    dd = dias(ativos=(1, 2, 3, 4, 5), inicio="07:00", fim="21:00", intervalo=60)
    dd[3] = {"ativo": True, "inicio": "08:00", "fim": "12:00", "intervaloMinutos": 30}
    return {
        "id": "ag1",
        "nome": "Quadra 1",
        "tipo": "aulas",
        "horaInicio": "07:00",
        "horaFim": "21:00",
        "intervaloMinutos": 60,
        "diasSemana": [1, 2, 3, 4, 5],
        "diasDetalhados": dd,
    }
