# domain/recorrencia.py
# Aulas recorrentes: todas as ocorrências de uma série compartilham repetirId.
# Aqui só cálculo de datas e montagem de documentos; gravação em services/aulas_repo.py.

from __future__ import annotations
from typing import Optional, Dict, Any, List, Iterable
from datetime import date, timedelta
import random
import string
import time

JANELA_PADRAO_SEMANAS = 12
SEMANAS_INICIAIS = 5

# campos que cada ocorrência materializada recebe em branco
CAMPOS_ATIVIDADE = ("atividadePlanoId", "atividadeTitulo", "atividadeTexto", "observacao")


def novo_repetir_id(agora_ms: Optional[int] = None) -> str:
    ms = agora_ms if agora_ms is not None else int(time.time() * 1000)
    sufixo = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"rep_{ms}_{sufixo}"


def _to_date(v) -> Optional[date]:
    if isinstance(v, date):
        return v
    try:
        return date.fromisoformat(str(v)[:10])
    except (TypeError, ValueError):
        return None


def janela_semanas(aula: Dict[str, Any], semanas: Optional[int] = None) -> int:
    if semanas and semanas > 0:
        return semanas
    try:
        v = int(aula.get("repetirJanelaSemanas") or 0)
    except (TypeError, ValueError):
        v = 0
    return v if v > 0 else JANELA_PADRAO_SEMANAS


def datas_a_materializar(data_base, datas_existentes: Iterable, hoje: date, semanas: int) -> List[str]:
    """
    Datas faltantes até hoje + semanas*7, de 7 em 7 dias após a maior data já
    existente (a própria base conta). Reexecutar com o resultado gravado dá [].
    """
    maior = _to_date(data_base)
    if maior is None:
        return []
    for d in datas_existentes or []:
        dd = _to_date(d)
        if dd and dd > maior:
            maior = dd

    limite = hoje + timedelta(days=7 * semanas)
    if maior >= limite:
        return []

    out = []
    prox = maior + timedelta(days=7)
    while prox <= limite:
        out.append(prox.isoformat())
        prox += timedelta(days=7)
    return out


def limpar_atividade(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc["atividadeFonte"] = "manual"
    for campo in CAMPOS_ATIVIDADE:
        doc[campo] = ""
    return doc


def copiar_ocorrencia(base: Dict[str, Any], nova_data: str, agora_iso: str) -> Dict[str, Any]:
    doc = {k: v for k, v in (base or {}).items() if k != "id"}
    doc["data"] = nova_data
    limpar_atividade(doc)
    doc["criadoEm"] = agora_iso
    doc["atualizadoEm"] = agora_iso
    return doc


def datas_iniciais(data_iso: str, semanas: int = SEMANAS_INICIAIS) -> List[str]:
    d0 = _to_date(data_iso)
    return [(d0 + timedelta(days=7 * i)).isoformat() for i in range(semanas)]


def ocorrencias_iniciais(payload: Dict[str, Any], repetir_id: str, agora_iso: str,
                         semanas: int = SEMANAS_INICIAIS) -> List[Dict[str, Any]]:
    """Primeira ocorrência mantém a atividade; as seguintes vêm em branco."""
    out = []
    for i, d in enumerate(datas_iniciais(payload["data"], semanas)):
        doc = dict(payload)
        doc.pop("id", None)
        doc.update({
            "data": d,
            "recorrente": True,
            "repetirId": repetir_id,
            "repetirJanelaSemanas": semanas,
            "criadoEm": agora_iso,
            "atualizadoEm": agora_iso,
        })
        if i > 0:
            limpar_atividade(doc)
        out.append(doc)
    return out


def datas_para_manter(datas_existentes: Iterable, hoje: date, minimo: int = SEMANAS_INICIAIS) -> List[str]:
    """
    Job semanal: garante `minimo` ocorrências de hoje em diante, seguindo o
    passo semanal a partir da última. Datas já existentes não se repetem.
    """
    existentes = sorted({d for d in (_to_date(x) for x in datas_existentes or []) if d})
    if not existentes:
        return []
    futuras = [d for d in existentes if d >= hoje]
    faltam = minimo - len(futuras)
    if faltam <= 0:
        return []

    cursor = existentes[-1] + timedelta(days=7)
    while cursor < hoje:
        cursor += timedelta(days=7)

    ja = set(existentes)
    out = []
    while len(out) < faltam:
        if cursor not in ja:
            out.append(cursor.isoformat())
        cursor += timedelta(days=7)
    return out
