# services/aulas_repo.py
# Aulas/reservas (coleção aulas): criação com recorrência inicial,
# edição/exclusão cientes da série (repetirId) e materialização semanal
# das ocorrências futuras.
#
# Regras:
# - Recorrente ⇔ repetirId não vazio, compartilhado pelas ocorrências.
# - Exclusão "esta-e-futuras" apaga documento a documento (sem transação
#   única): falha no meio deixa exclusão parcial.
# - Materialização não usa lock: duas execuções simultâneas podem duplicar
#   uma data; o job semanal pula datas já existentes.

from __future__ import annotations
from typing import Optional, Dict, Any, List
from datetime import date, datetime
import logging
import os

import pytz

from services import db as dbsvc
from domain import recorrencia as rec
from domain.erros import NotFound, ValidationError

log = logging.getLogger(__name__)

COL_AULAS = "aulas"

ESCOPO_SO_ESTA = "so-esta"
ESCOPO_FUTURAS = "esta-e-futuras"
ESCOPOS = (ESCOPO_SO_ESTA, ESCOPO_FUTURAS)

# campos que pertencem a uma ocorrência e não se propagam para a série
_CAMPOS_DA_OCORRENCIA = ("data",) + rec.CAMPOS_ATIVIDADE + ("atividadeFonte",)


def _col():
    return dbsvc.collection(COL_AULAS)


def hoje_local() -> date:
    tz_name = os.getenv("APP_TZ", "America/Sao_Paulo")
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.timezone("America/Sao_Paulo")
    return datetime.now(tz).date()


def _janela_env() -> Optional[int]:
    try:
        v = int(os.getenv("RECORRENCIA_JANELA_SEMANAS", "0") or 0)
    except ValueError:
        return None
    return v if v > 0 else None


# ------------------------------------------------------------
# Leitura
# ------------------------------------------------------------
def listar_aulas_por_data(data_iso: str, agenda_id: Optional[str] = None) -> List[Dict[str, Any]]:
    out = []
    for snap in _col().where("data", "==", data_iso).stream():
        a = dbsvc.snap_to_dict(snap)
        if agenda_id and a.get("agendaId") and a["agendaId"] != agenda_id:
            continue
        out.append(a)
    out.sort(key=lambda a: a.get("horaInicio") or "")
    return out


def listar_aulas_periodo(inicio_iso: str, fim_iso: str) -> List[Dict[str, Any]]:
    q = _col().where("data", ">=", inicio_iso).where("data", "<=", fim_iso)
    return [dbsvc.snap_to_dict(s) for s in q.stream()]


def obter_aula(aula_id: str) -> Dict[str, Any]:
    snap = _col().document(aula_id).get() if aula_id else None
    if not snap or not snap.exists:
        raise NotFound("Aula não encontrada.")
    return dbsvc.snap_to_dict(snap)


def _serie(repetir_id: str) -> List[Dict[str, Any]]:
    return [dbsvc.snap_to_dict(s) for s in _col().where("repetirId", "==", repetir_id).stream()]


def _eh_recorrente(aula: Dict[str, Any]) -> bool:
    return bool(aula.get("recorrente") and aula.get("repetirId"))


# ------------------------------------------------------------
# Criação
# ------------------------------------------------------------
def criar_aula(payload: Dict[str, Any]) -> List[str]:
    """
    payload já validado (domain.aula_form.montar_aula).
    Recorrente: cria as 5 primeiras ocorrências semanais da série.
    """
    ts = dbsvc.now_ts()
    if payload.get("recorrente"):
        repetir_id = rec.novo_repetir_id()
        docs = rec.ocorrencias_iniciais(payload, repetir_id, ts)
    else:
        doc = dict(payload)
        doc.update({"recorrente": False, "repetirId": "", "criadoEm": ts, "atualizadoEm": ts})
        docs = [doc]

    ids = []
    for doc in docs:
        ref = _col().document()
        ref.set(doc)
        ids.append(ref.id)
    log.info("[aulas_repo] aula(s) criada(s) n=%d repetirId=%s", len(ids), docs[0].get("repetirId"))
    return ids


# ------------------------------------------------------------
# Edição
# ------------------------------------------------------------
def atualizar_aula(aula_id: str, payload: Dict[str, Any], escopo: Optional[str] = None) -> List[str]:
    """
    so-esta (padrão): só o documento.
    esta-e-futuras: a ocorrência recebe tudo; as irmãs com data >= a da
    ocorrência recebem os campos da série (sem data nem atividade).
    """
    alvo = obter_aula(aula_id)
    ts = dbsvc.now_ts()
    payload = {k: v for k, v in (payload or {}).items() if k not in ("id", "criadoEm", "repetirId")}

    if escopo not in (None, "") and escopo not in ESCOPOS:
        raise ValidationError("Escopo de edição inválido.")

    # desmarcar "recorrente" desliga a ocorrência da série; edição não cria série nova
    recorrente = bool(payload.get("recorrente")) and _eh_recorrente(alvo)
    payload["recorrente"] = recorrente
    if not recorrente:
        payload["repetirId"] = ""
    payload["atualizadoEm"] = ts
    _col().document(aula_id).set(payload, merge=True)
    ids = [aula_id]

    if escopo == ESCOPO_FUTURAS and recorrente:
        corte = alvo.get("data") or ""
        comum = {k: v for k, v in payload.items() if k not in _CAMPOS_DA_OCORRENCIA}
        for irma in _serie(alvo["repetirId"]):
            if irma["id"] == aula_id or (irma.get("data") or "") < corte:
                continue
            _col().document(irma["id"]).set(comum, merge=True)
            ids.append(irma["id"])
    return ids


# ------------------------------------------------------------
# Exclusão
# ------------------------------------------------------------
def excluir_aula(aula_id: str, modo: Optional[str] = None) -> List[str]:
    """
    Não recorrente ou modo so-esta: apaga o documento.
    esta-e-futuras: apaga a ocorrência e as irmãs com data >= a dela
    (todas, se a ocorrência não tem data).
    Recorrente sem modo: ValidationError (o painel sempre pergunta).
    """
    alvo = obter_aula(aula_id)

    if not _eh_recorrente(alvo) or modo == ESCOPO_SO_ESTA:
        _col().document(aula_id).delete()
        return [aula_id]

    if modo != ESCOPO_FUTURAS:
        raise ValidationError("Aula recorrente: escolha excluir só esta ou esta e as futuras.")

    corte = alvo.get("data")
    apagados = []
    for irma in _serie(alvo["repetirId"]):
        if corte and (irma.get("data") or "") < corte:
            continue
        _col().document(irma["id"]).delete()
        apagados.append(irma["id"])
    log.info("[aulas_repo] série %s: %d ocorrência(s) excluída(s)", alvo["repetirId"], len(apagados))
    return apagados


# ------------------------------------------------------------
# Materialização
# ------------------------------------------------------------
def garantir_recorrencia_adiante(aula: Dict[str, Any], hoje: Optional[date] = None,
                                 semanas: Optional[int] = None) -> List[str]:
    """Cria as ocorrências que faltam até hoje + janela (padrão 12 semanas)."""
    if not _eh_recorrente(aula):
        return []
    hoje = hoje or hoje_local()
    janela = rec.janela_semanas(aula, semanas)
    irmas = _serie(aula["repetirId"])
    if not irmas:
        # série apagada entre a listagem e a expansão
        return []
    datas = rec.datas_a_materializar(aula.get("data"), [i.get("data") for i in irmas], hoje, janela)
    if not datas:
        return []

    ts = dbsvc.now_ts()
    criados = []
    for d in datas:
        ref = _col().document()
        ref.set(rec.copiar_ocorrencia(aula, d, ts))
        criados.append(ref.id)
    log.info("[aulas_repo] série %s: +%d ocorrência(s) até %s", aula["repetirId"], len(criados), datas[-1])
    return criados


def expandir_recorrencias(aulas: List[Dict[str, Any]], hoje: Optional[date] = None) -> List[str]:
    """Materializa para cada série presente no conjunto carregado (uma vez por série)."""
    vistos = set()
    criados = []
    for a in aulas or []:
        if not _eh_recorrente(a) or a["repetirId"] in vistos:
            continue
        vistos.add(a["repetirId"])
        criados.extend(garantir_recorrencia_adiante(a, hoje, _janela_env()))
    return criados


def manter_janela_recorrencias(hoje: Optional[date] = None, minimo: int = rec.SEMANAS_INICIAIS) -> Dict[str, int]:
    """Job semanal: cada série fica com pelo menos `minimo` ocorrências de hoje em diante."""
    hoje = hoje or hoje_local()
    series: Dict[str, List[Dict[str, Any]]] = {}
    for snap in _col().where("recorrente", "==", True).stream():
        a = dbsvc.snap_to_dict(snap)
        if a.get("repetirId"):
            series.setdefault(a["repetirId"], []).append(a)

    ts = dbsvc.now_ts()
    criadas = 0
    for repetir_id, ocorrencias in series.items():
        datas = rec.datas_para_manter([o.get("data") for o in ocorrencias], hoje, minimo)
        if not datas:
            continue
        ultima = max(ocorrencias, key=lambda o: o.get("data") or "")
        for d in datas:
            doc = rec.copiar_ocorrencia(ultima, d, ts)
            doc["repetirJanelaSemanas"] = minimo
            _col().document().set(doc)
            criadas += 1
    log.info("[aulas_repo] job recorrências: séries=%d criadas=%d", len(series), criadas)
    return {"series": len(series), "criadas": criadas}
