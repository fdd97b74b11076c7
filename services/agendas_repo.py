# services/agendas_repo.py
# Persistência das agendas (coleção agendasConfig).
# Leitura sempre passa por domain.agenda.normalizar_agenda.

from __future__ import annotations
from typing import Dict, Any, List
import logging

from services import db as dbsvc
from domain import agenda as ag
from domain.erros import NotFound, ValidationError

log = logging.getLogger(__name__)

COL_AGENDAS = "agendasConfig"

# campos aceitos numa atualização parcial (sem diasDetalhados)
_CAMPOS_PARCIAIS = (
    "nome", "tipo", "publica", "ativo",
    "professorId", "professorNome", "localId", "localNome", "modalidadeId", "modalidadeNome",
)


def _col():
    return dbsvc.collection(COL_AGENDAS)


def listar_agendas(somente_ativas: bool = False) -> List[Dict[str, Any]]:
    out = []
    for snap in _col().order_by("nome").stream():
        a = ag.normalizar_agenda(snap.id, snap.to_dict())
        if somente_ativas and not a["ativo"]:
            continue
        out.append(a)
    return out


def obter_agenda(agenda_id: str) -> Dict[str, Any]:
    if not agenda_id:
        raise NotFound("Agenda não encontrada.")
    snap = _col().document(agenda_id).get()
    if not snap.exists:
        raise NotFound("Agenda não encontrada.")
    return ag.normalizar_agenda(snap.id, snap.to_dict())


def criar_agenda(form: Dict[str, Any]) -> str:
    payload = ag.montar_payload_agenda(form)
    ts = dbsvc.now_ts()
    payload["criadoEm"] = ts
    payload["atualizadoEm"] = ts
    ref = _col().document()
    ref.set(payload)
    log.info("[agendas_repo] agenda criada id=%s nome=%s", ref.id, payload["nome"])
    return ref.id


def atualizar_agenda(agenda_id: str, form: Dict[str, Any]) -> None:
    """
    Com diasDetalhados: revalida tudo e regrava os agregados.
    Sem: atualização parcial dos campos simples.
    """
    ref = _col().document(agenda_id)
    if not ref.get().exists:
        raise NotFound("Agenda não encontrada.")

    form = form or {}
    if "diasDetalhados" in form:
        atual = obter_agenda(agenda_id)
        merged = {k: atual.get(k) for k in _CAMPOS_PARCIAIS}
        merged.update(form)
        payload = ag.montar_payload_agenda(merged)
    else:
        payload = {k: form[k] for k in _CAMPOS_PARCIAIS if k in form}
        if "nome" in payload and not (payload["nome"] or "").strip():
            raise ValidationError("Informe o nome da agenda.")
        if "tipo" in payload and payload["tipo"] not in ag.TIPOS_AGENDA:
            raise ValidationError("Tipo de agenda inválido.")
        if not payload:
            return
    payload["atualizadoEm"] = dbsvc.now_ts()
    ref.set(payload, merge=True)


def excluir_agenda(agenda_id: str) -> None:
    ref = _col().document(agenda_id)
    if not ref.get().exists:
        raise NotFound("Agenda não encontrada.")
    ref.delete()
    log.info("[agendas_repo] agenda excluída id=%s", agenda_id)
