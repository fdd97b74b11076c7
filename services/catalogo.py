# services/catalogo.py
# Cadastros de apoio: locais, modalidades, tipos de cobrança (com índice
# de nome único), alunos e planos de aula.

from __future__ import annotations
from typing import Optional, Dict, Any, List
import logging

from services import db as dbsvc
from services import unique_index as uidx
from services.normalize import name_lower, normalize_cpf
from domain.cobranca import normalizar_categoria, inferir_nome_base, qtd_alunos_tipo
from domain.erros import NotFound, ValidationError

log = logging.getLogger(__name__)

COL_ALUNOS = "alunos"
COL_PLANOS = "planosAula"

# tipo -> (coleção, índice de nome, rótulo para mensagens)
CATALOGOS = {
    "locais": ("locais", uidx.IDX_LOCAIS, "local"),
    "modalidades": ("modalidades", uidx.IDX_MODALIDADES, "modalidade"),
    "tiposCobranca": ("tiposCobranca", uidx.IDX_TIPOS_COBRANCA, "tipo de cobrança"),
}


def _cfg(tipo: str):
    if tipo not in CATALOGOS:
        raise NotFound("Cadastro desconhecido.")
    return CATALOGOS[tipo]


def _chave(tipo: str, doc: Dict[str, Any]) -> str:
    base = doc.get("nameLower") or name_lower(doc.get("nome"))
    if tipo == "tiposCobranca":
        return f"{doc.get('categoria') or ''}__{base}"
    return base


def _numero_ou_none(v: Any) -> Optional[int]:
    if v in (None, ""):
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def _sanitizar(tipo: str, payload: Dict[str, Any], atual: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Campos gravados; em edição, campos ausentes vêm do documento atual."""
    rotulo = _cfg(tipo)[2]
    src = dict(atual or {})
    src.update(payload or {})

    nome = (src.get("nome") or "").strip()
    if not nome:
        raise ValidationError(f"Informe o nome do {rotulo}." if tipo != "modalidades" else "Informe o nome da modalidade.")
    doc = {"nome": nome, "nameLower": name_lower(nome), "ativo": src.get("ativo") is not False}

    if tipo == "tiposCobranca":
        categoria = normalizar_categoria(src.get("categoria"))
        if not categoria:
            raise ValidationError("Categoria de cobrança inválida.")
        try:
            valor = float(src.get("valor"))
        except (TypeError, ValueError):
            raise ValidationError("Informe um valor válido.")
        if valor < 0:
            raise ValidationError("Informe um valor válido.")
        doc.update({
            "categoria": categoria,
            "valor": valor,
            "nomeBase": (src.get("nomeBase") or "").strip() or inferir_nome_base(nome),
            "qtdAlunos": qtd_alunos_tipo({"qtdAlunos": _numero_ou_none(src.get("qtdAlunos")), "nome": nome}),
        })
    return doc


# ------------------------------------------------------------
# Locais / modalidades / tipos de cobrança
# ------------------------------------------------------------
def listar(tipo: str, somente_ativos: bool = False) -> List[Dict[str, Any]]:
    colecao = _cfg(tipo)[0]
    out = []
    for snap in dbsvc.collection(colecao).order_by("nome").stream():
        d = dbsvc.snap_to_dict(snap)
        if somente_ativos and d.get("ativo") is False:
            continue
        out.append(d)
    return out


def criar(tipo: str, payload: Dict[str, Any]) -> str:
    colecao, indice, _ = _cfg(tipo)
    doc = _sanitizar(tipo, payload)
    ts = dbsvc.now_ts()
    doc["criadoEm"] = ts
    doc["atualizadoEm"] = ts
    ref = dbsvc.collection(colecao).document()
    chave = _chave(tipo, doc)

    def _apply(tx):
        idx = uidx.checar_livre(tx, indice, chave, codigo="NOME_TAKEN")
        tx.set(ref, doc)
        uidx.gravar(tx, idx, ref.id, colecao)
        return ref.id

    return dbsvc.run_transaction(_apply)


def atualizar(tipo: str, item_id: str, payload: Dict[str, Any]) -> None:
    """Renomear troca o índice: confere o antigo, reserva o novo, libera o antigo."""
    colecao, indice, _ = _cfg(tipo)
    ref = dbsvc.collection(colecao).document(item_id)

    def _apply(tx):
        snap = ref.get(transaction=tx)
        if not snap.exists:
            raise NotFound()
        atual = snap.to_dict() or {}
        doc = _sanitizar(tipo, payload, atual)
        chave_antiga, chave_nova = _chave(tipo, atual), _chave(tipo, doc)
        if chave_antiga != chave_nova:
            antigo = uidx.checar_dono(tx, indice, chave_antiga, item_id, estrito=False)
            novo = uidx.checar_livre(tx, indice, chave_nova, codigo="NOME_TAKEN")
            uidx.liberar(tx, antigo)
            uidx.gravar(tx, novo, item_id, colecao)
        doc["atualizadoEm"] = dbsvc.now_ts()
        tx.set(ref, doc, merge=True)

    dbsvc.run_transaction(_apply)


def alterar_status(tipo: str, item_id: str, ativo: bool) -> None:
    ref = dbsvc.collection(_cfg(tipo)[0]).document(item_id)
    if not ref.get().exists:
        raise NotFound()
    ref.set({"ativo": bool(ativo), "atualizadoEm": dbsvc.now_ts()}, merge=True)


def excluir(tipo: str, item_id: str) -> None:
    colecao, indice, _ = _cfg(tipo)
    ref = dbsvc.collection(colecao).document(item_id)

    def _apply(tx):
        snap = ref.get(transaction=tx)
        if not snap.exists:
            raise NotFound()
        idx = uidx.checar_dono(tx, indice, _chave(tipo, snap.to_dict() or {}), item_id, estrito=False)
        tx.delete(ref)
        uidx.liberar(tx, idx)

    dbsvc.run_transaction(_apply)


# ------------------------------------------------------------
# Alunos
# ------------------------------------------------------------
STATUS_ALUNO = ("ativo", "inativo")
_CAMPOS_ALUNO = ("nome", "responsavelId", "responsavelNome", "telefone", "nascimento", "observacoes")


def listar_alunos(status: Optional[str] = None) -> List[Dict[str, Any]]:
    q = dbsvc.collection(COL_ALUNOS)
    if status in STATUS_ALUNO:
        q = q.where("status", "==", status)
    out = [dbsvc.snap_to_dict(s) for s in q.stream()]
    out.sort(key=lambda a: name_lower(a.get("nome")))
    return out


def _doc_aluno(payload: Dict[str, Any]) -> Dict[str, Any]:
    doc = {k: (payload.get(k) or "").strip() for k in _CAMPOS_ALUNO if isinstance(payload.get(k), str)}
    if "cpf" in payload:
        doc["cpf"] = normalize_cpf(payload.get("cpf"))
    if payload.get("status") in STATUS_ALUNO:
        doc["status"] = payload["status"]
    return doc


def criar_aluno(payload: Dict[str, Any]) -> str:
    doc = _doc_aluno(payload or {})
    if not doc.get("nome"):
        raise ValidationError("Informe o nome do aluno.")
    doc.setdefault("status", "ativo")
    ts = dbsvc.now_ts()
    doc["criadoEm"] = ts
    doc["atualizadoEm"] = ts
    ref = dbsvc.collection(COL_ALUNOS).document()
    ref.set(doc)
    return ref.id


def atualizar_aluno(aluno_id: str, payload: Dict[str, Any]) -> None:
    ref = dbsvc.collection(COL_ALUNOS).document(aluno_id)
    if not ref.get().exists:
        raise NotFound("Aluno não encontrado.")
    doc = _doc_aluno(payload or {})
    if "nome" in doc and not doc["nome"]:
        raise ValidationError("Informe o nome do aluno.")
    doc["atualizadoEm"] = dbsvc.now_ts()
    ref.set(doc, merge=True)


# ------------------------------------------------------------
# Planos de aula
# ------------------------------------------------------------
def listar_planos(modalidade_id: Optional[str] = None) -> List[Dict[str, Any]]:
    q = dbsvc.collection(COL_PLANOS)
    if modalidade_id:
        q = q.where("modalidadeId", "==", modalidade_id)
    return [p for p in (dbsvc.snap_to_dict(s) for s in q.stream()) if p.get("ativo") is not False]


def criar_plano(payload: Dict[str, Any]) -> str:
    payload = payload or {}
    tema = (payload.get("tema") or "").strip()
    atividades = (payload.get("atividades") or "").strip()
    if not tema or not atividades:
        raise ValidationError("Informe o tema e as atividades do plano.")
    ts = dbsvc.now_ts()
    ref = dbsvc.collection(COL_PLANOS).document()
    ref.set({
        "modalidadeId": (payload.get("modalidadeId") or "").strip(),
        "tema": tema,
        "atividades": atividades,
        "ativo": True,
        "criadoEm": ts,
        "atualizadoEm": ts,
    })
    return ref.id
