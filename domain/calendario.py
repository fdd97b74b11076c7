# domain/calendario.py
"""
Visões de calendário do painel (mês / semana / dia) calculadas em cima
de uma agenda já normalizada e das aulas carregadas do período.

Saída é JSON puro; o front só desenha. Cada célula da grade semanal
informa se está dentro da janela do dia, quais aulas começam nela e qual
ação um clique dispara ("criar", "detalhe" ou nada).
"""

from __future__ import annotations
from typing import Optional, Dict, Any, List
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from domain import agenda as ag

MODOS = ("mes", "semana", "dia")
MAX_AULAS_CELULA_MES = 3
MSG_DIA_INATIVO = "Agenda não ativa para este dia."

_MESES = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


# ------------------------------------------------------------
# Datas
# ------------------------------------------------------------
def dia_semana(d: date) -> int:
    """0=domingo..6=sábado."""
    return (d.weekday() + 1) % 7


def parse_data(iso: str) -> date:
    return date.fromisoformat(str(iso)[:10])


def inicio_semana(d: date) -> date:
    return d - timedelta(days=dia_semana(d))


def dias_da_semana(base: date) -> List[date]:
    ini = inicio_semana(base)
    return [ini + timedelta(days=i) for i in range(7)]


def grade_mes(base: date) -> List[List[date]]:
    """6 semanas x 7 dias, começando no domingo que antecede (ou é) o dia 1."""
    ini = inicio_semana(base.replace(day=1))
    return [[ini + timedelta(days=s * 7 + i) for i in range(7)] for s in range(6)]


def intervalo_periodo(modo: str, base: date) -> tuple:
    """(primeiro, último) dia exibido pela visão."""
    if modo == "mes":
        g = grade_mes(base)
        return g[0][0], g[-1][-1]
    if modo == "semana":
        d = dias_da_semana(base)
        return d[0], d[-1]
    return base, base


def avancar_periodo(modo: str, base: date) -> date:
    if modo == "mes":
        return base + relativedelta(months=1)
    if modo == "semana":
        return base + timedelta(days=7)
    return base + timedelta(days=1)


def voltar_periodo(modo: str, base: date) -> date:
    if modo == "mes":
        return base - relativedelta(months=1)
    if modo == "semana":
        return base - timedelta(days=7)
    return base - timedelta(days=1)


def titulo_periodo(modo: str, base: date) -> str:
    if modo == "mes":
        return f"{_MESES[base.month - 1]} de {base.year}"
    if modo == "semana":
        d = dias_da_semana(base)
        return f"{d[0]:%d/%m} a {d[-1]:%d/%m/%Y}"
    return f"{ag.NOMES_DIAS[dia_semana(base)]}, {base:%d/%m/%Y}"


# ------------------------------------------------------------
# Aulas x agenda
# ------------------------------------------------------------
def agenda_aceita_aulas(agenda: Optional[Dict[str, Any]]) -> bool:
    return ((agenda or {}).get("tipo") or "aulas") in ("aulas", "hibrida")


def aula_encaixa_na_agenda(aula: Dict[str, Any], agenda: Optional[Dict[str, Any]]) -> bool:
    if not agenda:
        return False
    if agenda.get("tipo") == "reservas":
        return False
    for campo in ("professorId", "localId", "modalidadeId"):
        fixo = agenda.get(campo)
        if fixo and aula.get(campo) != fixo:
            return False
    hi = ag.normalizar_hhmm(aula.get("horaInicio"))
    if hi is None:
        return False
    if agenda.get("horaInicio") and hi < agenda["horaInicio"]:
        return False
    if agenda.get("horaFim") and hi > agenda["horaFim"]:
        return False
    return True


def aulas_do_dia(aulas: List[Dict[str, Any]], agenda: Optional[Dict[str, Any]], data_iso: str) -> List[Dict[str, Any]]:
    agenda_id = (agenda or {}).get("id")
    out = []
    for a in aulas or []:
        if a.get("data") != data_iso:
            continue
        if a.get("ativa") is False:
            continue
        if a.get("agendaId") and agenda_id and a["agendaId"] != agenda_id:
            continue
        if not aula_encaixa_na_agenda(a, agenda):
            continue
        out.append(a)
    out.sort(key=lambda a: ag.normalizar_hhmm(a.get("horaInicio")) or "")
    return out


def _resumo_aula(a: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": a.get("id"),
        "horaInicio": a.get("horaInicio"),
        "horaFim": a.get("horaFim"),
        "professorNome": a.get("professorNome") or "",
        "modalidadeNome": a.get("modalidadeNome") or "",
        "localNome": a.get("localNome") or "",
        "alunosNomes": list(a.get("alunosNomes") or []),
        "recorrente": bool(a.get("recorrente")),
    }


# ------------------------------------------------------------
# Células e clique
# ------------------------------------------------------------
def acao_clique(celula: Dict[str, Any], pode_criar: bool) -> Optional[str]:
    if not celula.get("dentroFaixa"):
        return None
    if celula.get("ocupado"):
        return "detalhe"
    return "criar" if pode_criar else None


def montar_celula(agenda: Optional[Dict[str, Any]], dia: date, slot: str,
                  aulas_dia: List[Dict[str, Any]]) -> Dict[str, Any]:
    no_slot = [a for a in aulas_dia if ag.normalizar_hhmm(a.get("horaInicio")) == slot]
    celula = {
        "data": dia.isoformat(),
        "hora": slot,
        "dentroFaixa": ag.slot_dentro_faixa(agenda, dia_semana(dia), slot),
        "aulas": [_resumo_aula(a) for a in no_slot],
        "ocupado": bool(no_slot),
    }
    celula["acao"] = acao_clique(celula, agenda_aceita_aulas(agenda))
    if celula["acao"] == "criar":
        celula["prefill"] = {"data": celula["data"], "horaInicio": slot}
    return celula


# ------------------------------------------------------------
# Visões
# ------------------------------------------------------------
def visao_mes(agenda: Dict[str, Any], aulas: List[Dict[str, Any]], base: date) -> Dict[str, Any]:
    semanas = []
    for semana in grade_mes(base):
        linha = []
        for d in semana:
            iso = d.isoformat()
            do_dia = aulas_do_dia(aulas, agenda, iso) if ag.dia_ativo(agenda, dia_semana(d)) else []
            linha.append({
                "data": iso,
                "doMes": d.month == base.month,
                "ativo": ag.dia_ativo(agenda, dia_semana(d)),
                "aulas": [_resumo_aula(a) for a in do_dia[:MAX_AULAS_CELULA_MES]],
                "extras": max(0, len(do_dia) - MAX_AULAS_CELULA_MES),
            })
        semanas.append(linha)
    return {"modo": "mes", "titulo": titulo_periodo("mes", base), "semanas": semanas}


def visao_semana(agenda: Dict[str, Any], aulas: List[Dict[str, Any]], base: date) -> Dict[str, Any]:
    dias = dias_da_semana(base)
    grade = ag.grade_semanal(agenda)
    por_dia = {d: aulas_do_dia(aulas, agenda, d.isoformat()) for d in dias}
    linhas = [
        {"hora": slot, "celulas": [montar_celula(agenda, d, slot, por_dia[d]) for d in dias]}
        for slot in grade["slots"]
    ]
    return {
        "modo": "semana",
        "titulo": titulo_periodo("semana", base),
        "dias": [d.isoformat() for d in dias],
        "grade": grade,
        "linhas": linhas,
    }


def visao_dia(agenda: Dict[str, Any], aulas: List[Dict[str, Any]], base: date) -> Dict[str, Any]:
    out = {"modo": "dia", "titulo": titulo_periodo("dia", base), "data": base.isoformat()}
    if not ag.dia_ativo(agenda, dia_semana(base)):
        out.update({"ativo": False, "mensagem": MSG_DIA_INATIVO, "linhas": []})
        return out
    grade = ag.grade_semanal(agenda)
    do_dia = aulas_do_dia(aulas, agenda, base.isoformat())
    out.update({
        "ativo": True,
        "grade": grade,
        "linhas": [montar_celula(agenda, base, slot, do_dia) for slot in grade["slots"]],
    })
    return out


def montar_visao(modo: str, agenda: Dict[str, Any], aulas: List[Dict[str, Any]], base: date) -> Dict[str, Any]:
    if modo == "mes":
        v = visao_mes(agenda, aulas, base)
    elif modo == "semana":
        v = visao_semana(agenda, aulas, base)
    else:
        v = visao_dia(agenda, aulas, base)
    v["anterior"] = voltar_periodo(modo, base).isoformat()
    v["proximo"] = avancar_periodo(modo, base).isoformat()
    return v
