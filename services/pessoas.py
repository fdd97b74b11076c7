# services/pessoas.py
# Colaboradores (coleção professores) e responsáveis, com conta de login
# no Firebase Auth e unicidade transacional de CPF/e-mail.
#
# Fluxo de criação:
#   1) pré-checagem por consulta (erro rápido para o formulário)
#   2) transação: índices unique_cpf + unique_email[_global] + documento
#   3) Firebase Auth: cria o usuário e grava authUid no documento
# Se o passo 3 falhar, o passo 2 é desfeito.

from __future__ import annotations
from typing import Optional, Dict, Any
import logging
import secrets

from firebase_admin import auth as fb_auth

from services import db as dbsvc
from services import firebase_admin_init as fbinit
from services import unique_index as uidx
from services.normalize import normalize_cpf, normalize_email
from domain.erros import NotFound, UniqueConflict, ValidationError

log = logging.getLogger(__name__)

COL_USERS = "users"
COL_PROFESSORES = "professores"
COL_RESPONSAVEIS = "responsaveis"

ROLES_COLABORADOR = ("coordenador", "professores", "secretaria")

# tipo -> (coleção, índice de e-mail)
TIPOS = {
    "colaborador": (COL_PROFESSORES, uidx.IDX_EMAIL_GLOBAL),
    "responsavel": (COL_RESPONSAVEIS, uidx.IDX_EMAIL_RESPONSAVEL),
}

_CAMPOS_LIVRES = (
    "nome", "telefone", "funcao", "cep", "endereco", "numero", "complemento",
    "bairro", "cidade", "uf",
)


def role_por_funcao(funcao: Any) -> str:
    f = str(funcao or "").strip().lower()
    return f if f in ROLES_COLABORADOR else "professores"


def senha_temporaria() -> str:
    return secrets.token_urlsafe(12)


def _auth():
    fbinit.ensure_firebase_admin()
    return fb_auth


def _cfg(tipo: str):
    if tipo not in TIPOS:
        raise ValidationError("Tipo de cadastro inválido.")
    return TIPOS[tipo]


def _pre_checar(colecao: str, campo: str, valor: str, codigo: str, ignorar_id: Optional[str] = None):
    for snap in dbsvc.collection(colecao).where(campo, "==", valor).limit(2).stream():
        if snap.id != ignorar_id:
            raise UniqueConflict(codigo)


def _campos_livres(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: payload[k].strip() for k in _CAMPOS_LIVRES if isinstance(payload.get(k), str)}


# ------------------------------------------------------------
# Criação
# ------------------------------------------------------------
def criar_pessoa(tipo: str, payload: Dict[str, Any]) -> Dict[str, str]:
    colecao, idx_email = _cfg(tipo)
    payload = payload or {}
    nome = (payload.get("nome") or "").strip()
    cpf = normalize_cpf(payload.get("cpf"))
    email = normalize_email(payload.get("email"))
    if not nome or not cpf or not email:
        raise ValidationError("Nome, CPF e e-mail são obrigatórios.")
    if len(cpf) != 11:
        raise ValidationError("CPF inválido.")

    _pre_checar(colecao, "cpfNorm", cpf, "CPF_TAKEN")
    _pre_checar(colecao, "emailNorm", email, "EMAIL_TAKEN")

    doc = _campos_livres(payload)
    ts = dbsvc.now_ts()
    doc.update({
        "nome": nome,
        "cpf": payload.get("cpf"),
        "cpfNorm": cpf,
        "email": email,
        "emailNorm": email,
        "ativo": payload.get("ativo") is not False,
        "role": role_por_funcao(payload.get("funcao")) if tipo == "colaborador" else "responsavel",
        "criadoEm": ts,
        "atualizadoEm": ts,
    })
    ref = dbsvc.collection(colecao).document()

    def _apply(tx):
        r_cpf = uidx.checar_livre(tx, uidx.IDX_CPF, cpf, codigo="CPF_TAKEN")
        r_email = uidx.checar_livre(tx, idx_email, email, codigo="EMAIL_TAKEN")
        tx.set(ref, doc)
        uidx.gravar(tx, r_cpf, ref.id, colecao)
        uidx.gravar(tx, r_email, ref.id, colecao)

    dbsvc.run_transaction(_apply)

    try:
        user = _auth().create_user(email=email, password=senha_temporaria(), display_name=nome)
    except fb_auth.EmailAlreadyExistsError:
        _desfazer_criacao(colecao, idx_email, ref, cpf, email)
        raise UniqueConflict("AUTH_EMAIL_TAKEN")
    except Exception:
        _desfazer_criacao(colecao, idx_email, ref, cpf, email)
        raise

    ref.update({"authUid": user.uid})
    log.info("[pessoas] %s criado id=%s authUid=%s", tipo, ref.id, user.uid)
    return {"id": ref.id, "authUid": user.uid}


def _desfazer_criacao(colecao: str, idx_email: str, ref, cpf: str, email: str) -> None:
    def _apply(tx):
        r_cpf = uidx.checar_dono(tx, uidx.IDX_CPF, cpf, ref.id, estrito=False)
        r_email = uidx.checar_dono(tx, idx_email, email, ref.id, estrito=False)
        tx.delete(ref)
        uidx.liberar(tx, r_cpf)
        uidx.liberar(tx, r_email)

    try:
        dbsvc.run_transaction(_apply)
    except Exception:
        log.exception("[pessoas] falha ao desfazer criação id=%s", ref.id)


# ------------------------------------------------------------
# Edição
# ------------------------------------------------------------
def atualizar_pessoa(tipo: str, pessoa_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Campos livres + troca de e-mail/CPF com swap de índice.
    Troca de e-mail também atualiza o login (Firebase Auth).
    """
    colecao, idx_email = _cfg(tipo)
    payload = payload or {}
    ref = dbsvc.collection(colecao).document(pessoa_id)

    novo_email = normalize_email(payload.get("email")) if "email" in payload else None
    novo_cpf = normalize_cpf(payload.get("cpf")) if "cpf" in payload else None
    if novo_email is not None and not novo_email:
        raise ValidationError("Informe o e-mail.")
    if novo_cpf is not None and len(novo_cpf) != 11:
        raise ValidationError("CPF inválido.")
    if "nome" in payload and not (payload.get("nome") or "").strip():
        raise ValidationError("Informe o nome.")

    def _apply(tx):
        snap = ref.get(transaction=tx)
        if not snap.exists:
            raise NotFound()
        atual = snap.to_dict() or {}
        email_antigo = atual.get("emailNorm") or normalize_email(atual.get("email"))
        cpf_antigo = atual.get("cpfNorm") or normalize_cpf(atual.get("cpf"))

        trocas = []
        if novo_email and novo_email != email_antigo:
            antigo = uidx.checar_dono(tx, idx_email, email_antigo, pessoa_id) if email_antigo else None
            trocas.append((antigo, uidx.checar_livre(tx, idx_email, novo_email, codigo="EMAIL_TAKEN")))
        if novo_cpf and novo_cpf != cpf_antigo:
            antigo = uidx.checar_dono(tx, uidx.IDX_CPF, cpf_antigo, pessoa_id) if cpf_antigo else None
            trocas.append((antigo, uidx.checar_livre(tx, uidx.IDX_CPF, novo_cpf, codigo="CPF_TAKEN")))

        upd = _campos_livres(payload)
        if tipo == "colaborador" and "funcao" in payload:
            upd["role"] = role_por_funcao(payload.get("funcao"))
        if "ativo" in payload:
            upd["ativo"] = payload.get("ativo") is not False
        if novo_email and novo_email != email_antigo:
            upd.update({"email": novo_email, "emailNorm": novo_email})
        if novo_cpf and novo_cpf != cpf_antigo:
            upd.update({"cpf": payload.get("cpf"), "cpfNorm": novo_cpf})
        upd["atualizadoEm"] = dbsvc.now_ts()

        tx.set(ref, upd, merge=True)
        for antigo, novo in trocas:
            uidx.liberar(tx, antigo)
            uidx.gravar(tx, novo, pessoa_id, colecao)
        return atual, email_antigo

    atual, email_antigo = dbsvc.run_transaction(_apply)

    sync = None
    if novo_email and novo_email != email_antigo:
        sync = sincronizar_auth("updateEmail", novo_email, email_antigo=email_antigo,
                                nome=atual.get("nome"), uid=atual.get("authUid"))
        if sync.get("uid") and sync["uid"] != atual.get("authUid"):
            ref.update({"authUid": sync["uid"]})
    return {"id": pessoa_id, "auth": sync}


# ------------------------------------------------------------
# Exclusão
# ------------------------------------------------------------
def excluir_pessoa(tipo: str, pessoa_id: str) -> Dict[str, Any]:
    """Documento + índices numa transação; depois o login (não encontrado é ok)."""
    colecao, idx_email = _cfg(tipo)
    ref = dbsvc.collection(colecao).document(pessoa_id)

    def _apply(tx):
        snap = ref.get(transaction=tx)
        if not snap.exists:
            raise NotFound()
        atual = snap.to_dict() or {}
        cpf = atual.get("cpfNorm") or normalize_cpf(atual.get("cpf"))
        email = atual.get("emailNorm") or normalize_email(atual.get("email"))
        r_cpf = uidx.checar_dono(tx, uidx.IDX_CPF, cpf, pessoa_id, estrito=False) if cpf else None
        r_email = uidx.checar_dono(tx, idx_email, email, pessoa_id, estrito=False) if email else None
        tx.delete(ref)
        uidx.liberar(tx, r_cpf)
        uidx.liberar(tx, r_email)
        return atual

    atual = dbsvc.run_transaction(_apply)
    return {"id": pessoa_id, "authRemovido": _remover_login(atual)}


def _remover_login(doc: Dict[str, Any]) -> bool:
    auth = _auth()
    try:
        uid = doc.get("authUid")
        if not uid:
            email = doc.get("emailNorm") or normalize_email(doc.get("email"))
            if not email:
                return False
            uid = auth.get_user_by_email(email).uid
        auth.delete_user(uid)
        return True
    except auth.UserNotFoundError:
        return False
    except Exception:
        log.exception("[pessoas] falha ao remover login do Firebase Auth")
        return False


# ------------------------------------------------------------
# Sincronização de login
# ------------------------------------------------------------
def sincronizar_auth(acao: str, email: str, email_antigo: Optional[str] = None,
                     nome: Optional[str] = None, uid: Optional[str] = None) -> Dict[str, Any]:
    """
    create: garante usuário para o e-mail (senha temporária aleatória).
    updateEmail: acha pelo antigo, senão pelo novo, senão cria; depois troca o e-mail.
    """
    auth = _auth()
    email = normalize_email(email)
    email_antigo = normalize_email(email_antigo)
    if not email:
        raise ValidationError("Informe o e-mail.")

    def _buscar(e: str):
        if not e:
            return None
        try:
            return auth.get_user_by_email(e)
        except auth.UserNotFoundError:
            return None

    def _criar():
        kwargs = {"email": email, "password": senha_temporaria()}
        if nome:
            kwargs["display_name"] = nome
        return auth.create_user(**kwargs)

    if acao == "create":
        user = _buscar(email)
        if user:
            return {"uid": user.uid, "status": "exists"}
        return {"uid": _criar().uid, "status": "created"}

    if acao == "updateEmail":
        if email_antigo and email_antigo == email:
            user = _buscar(email)
            return {"uid": user.uid if user else uid, "status": "skipped"}
        user = None
        if uid:
            try:
                user = auth.get_user(uid)
            except auth.UserNotFoundError:
                user = None
        user = user or _buscar(email_antigo) or _buscar(email)
        if not user:
            return {"uid": _criar().uid, "status": "created"}
        if (user.email or "").lower() == email:
            return {"uid": user.uid, "status": "skipped"}
        try:
            auth.update_user(user.uid, email=email)
        except auth.EmailAlreadyExistsError:
            raise UniqueConflict("AUTH_EMAIL_TAKEN")
        return {"uid": user.uid, "status": "updated"}

    raise ValidationError("Ação inválida.")


# ------------------------------------------------------------
# Login: perfil por CPF
# ------------------------------------------------------------
def buscar_perfil_por_cpf(cpf: Any) -> Optional[Dict[str, str]]:
    """Procura em users, depois responsaveis, depois professores. Exige e-mail."""
    cpf = normalize_cpf(cpf)
    if len(cpf) != 11:
        raise ValidationError("CPF inválido.")

    buscas = (
        (COL_USERS, "cpf"),
        (COL_RESPONSAVEIS, "cpfNorm"),
        (COL_PROFESSORES, "cpfNorm"),
    )
    for colecao, campo in buscas:
        for snap in dbsvc.collection(colecao).where(campo, "==", cpf).limit(1).stream():
            d = snap.to_dict() or {}
            email = normalize_email(d.get("email"))
            if not email:
                continue
            if colecao == COL_USERS:
                tipo = d.get("role") or "gestor"
            elif colecao == COL_RESPONSAVEIS:
                tipo = "responsavel"
            else:
                tipo = d.get("role") or "professores"
            return {"id": snap.id, "email": email, "tipo": tipo, "colecao": colecao}
    return None
