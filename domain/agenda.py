# domain/agenda.py
"""
NexQuadra: domínio de agendas (janelas de atendimento)

Uma agenda (coleção agendasConfig) tem dois formatos de janela:
  - Agregado (legado): horaInicio/horaFim/intervaloMinutos + diasSemana
  - Detalhado: diasDetalhados com exatamente 7 entradas (0=domingo..6=sábado),
    cada uma {ativo, inicio, fim, intervaloMinutos}. Quando presente, vence
    o agregado.

Tudo aqui é puro (sem Firestore): recebe dicts já carregados.
Horários são "HH:MM"; comparações entre strings HH:MM são lexicográficas.
"""

from __future__ import annotations
from typing import Optional, Dict, Any, List, Tuple
import re

from domain.erros import ValidationError

DEFAULT_INICIO = "08:00"
DEFAULT_FIM = "22:00"
DEFAULT_INTERVALO = 60

# faixa da grade semanal quando nenhum dia está ativo (06:00–22:00)
FAIXA_SEMANA_PADRAO = (6 * 60, 22 * 60)

# janela do formulário de aula quando a agenda não define nada
LIMITE_FORM_INICIO = "00:00"
LIMITE_FORM_FIM = "23:59"

TIPOS_AGENDA = ("aulas", "reservas", "hibrida")

NOMES_DIAS = ("Domingo", "Segunda", "Terça", "Quarta", "Quinta", "Sexta", "Sábado")

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


# ------------------------------------------------------------
# Conversões HH:MM <-> minutos
# ------------------------------------------------------------
def normalizar_hhmm(valor: Any) -> Optional[str]:
    """Aceita "8:00" ou "08:00"; devolve "08:00" ou None se inválido."""
    if not isinstance(valor, str):
        return None
    m = _HHMM_RE.match(valor.strip())
    if not m:
        return None
    h, mi = int(m.group(1)), int(m.group(2))
    if h > 23 or mi > 59:
        return None
    return f"{h:02d}:{mi:02d}"


def hhmm_para_min(valor: Any) -> Optional[int]:
    hhmm = normalizar_hhmm(valor)
    if hhmm is None:
        return None
    h, mi = hhmm.split(":")
    return int(h) * 60 + int(mi)


def min_para_hhmm(minutos: int) -> str:
    return f"{minutos // 60:02d}:{minutos % 60:02d}"


def _int_ou(valor: Any, padrao: Optional[int]) -> Optional[int]:
    try:
        return int(valor)
    except (TypeError, ValueError):
        return padrao


def _dias_semana(agenda: Dict[str, Any]) -> List[int]:
    out = []
    for d in agenda.get("diasSemana") or []:
        v = _int_ou(d, None)
        if v is not None and 0 <= v <= 6:
            out.append(v)
    return out


def tem_dias_detalhados(agenda: Dict[str, Any]) -> bool:
    dd = (agenda or {}).get("diasDetalhados")
    return isinstance(dd, list) and len(dd) == 7


# ------------------------------------------------------------
# Resolução por dia da semana
# ------------------------------------------------------------
def resolver_dia(agenda: Optional[Dict[str, Any]], dow: int) -> Optional[Dict[str, Any]]:
    """
    Janela efetiva de um dia da semana: {"inicio", "fim", "intervaloMinutos"}
    ou None quando o dia não atende.
    """
    if not agenda:
        return None

    if tem_dias_detalhados(agenda):
        d = agenda["diasDetalhados"][dow]
        if not isinstance(d, dict) or d.get("ativo") is False:
            return None
        return {
            "inicio": d.get("inicio") or d.get("horaInicio") or agenda.get("horaInicio") or DEFAULT_INICIO,
            "fim": d.get("fim") or d.get("horaFim") or agenda.get("horaFim") or DEFAULT_FIM,
            "intervaloMinutos": (
                _int_ou(d.get("intervaloMinutos"), 0)
                or _int_ou(agenda.get("intervaloMinutos"), 0)
                or DEFAULT_INTERVALO
            ),
        }

    dias = _dias_semana(agenda)
    if dias and dow not in dias:
        return None
    return {
        "inicio": agenda.get("horaInicio") or DEFAULT_INICIO,
        "fim": agenda.get("horaFim") or DEFAULT_FIM,
        "intervaloMinutos": _int_ou(agenda.get("intervaloMinutos"), 0) or DEFAULT_INTERVALO,
    }


def faixa_horaria_dia(agenda: Optional[Dict[str, Any]], dow: int) -> Optional[Tuple[int, int]]:
    """(inicio, fim) em minutos; None se o dia está inativo ou tem largura zero."""
    dia = resolver_dia(agenda, dow)
    if not dia:
        return None
    ini = hhmm_para_min(dia["inicio"])
    fim = hhmm_para_min(dia["fim"])
    if ini is None or fim is None or fim <= ini:
        return None
    return ini, fim


def dia_ativo(agenda: Optional[Dict[str, Any]], dow: int) -> bool:
    return faixa_horaria_dia(agenda, dow) is not None


def slot_dentro_faixa(agenda: Optional[Dict[str, Any]], dow: int, slot: str) -> bool:
    faixa = faixa_horaria_dia(agenda, dow)
    m = hhmm_para_min(slot)
    if faixa is None or m is None:
        return False
    return faixa[0] <= m < faixa[1]


# ------------------------------------------------------------
# Grade semanal
# ------------------------------------------------------------
def min_max_semana(agenda: Optional[Dict[str, Any]]) -> Tuple[int, int]:
    faixas = [f for f in (faixa_horaria_dia(agenda, dow) for dow in range(7)) if f]
    if not faixas:
        return FAIXA_SEMANA_PADRAO
    return min(f[0] for f in faixas), max(f[1] for f in faixas)


def gerar_slots_por_range(inicio_min: int, fim_min: int, passo: int) -> List[str]:
    passo = passo if passo and passo > 0 else DEFAULT_INTERVALO
    return [min_para_hhmm(m) for m in range(inicio_min, fim_min, passo)]


def grade_semanal(agenda: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    ini, fim = min_max_semana(agenda)
    passo = _int_ou((agenda or {}).get("intervaloMinutos"), 0) or DEFAULT_INTERVALO
    return {
        "inicio": min_para_hhmm(ini),
        "fim": min_para_hhmm(fim),
        "intervaloMinutos": passo,
        "slots": gerar_slots_por_range(ini, fim, passo),
    }


# ------------------------------------------------------------
# Limites usados pelo formulário de aula
# ------------------------------------------------------------
def limites_horario(agenda: Optional[Dict[str, Any]], dow: Optional[int] = None) -> Tuple[str, str]:
    agenda = agenda or {}
    inicio = agenda.get("horaInicio") or LIMITE_FORM_INICIO
    fim = agenda.get("horaFim") or LIMITE_FORM_FIM
    if dow is not None and tem_dias_detalhados(agenda):
        d = agenda["diasDetalhados"][dow]
        if isinstance(d, dict) and d.get("inicio") and d.get("fim"):
            return d["inicio"], d["fim"]
    return inicio, fim


# ------------------------------------------------------------
# Normalização de leitura (Firestore -> dict da API)
# ------------------------------------------------------------
def _normalizar_dia_detalhado(d: Any, agenda: Dict[str, Any]) -> Dict[str, Any]:
    d = d if isinstance(d, dict) else {}
    return {
        "ativo": d.get("ativo") is not False,
        "inicio": d.get("inicio") if d.get("inicio") is not None else agenda["horaInicio"],
        "fim": d.get("fim") if d.get("fim") is not None else agenda["horaFim"],
        "intervaloMinutos": (
            d.get("intervaloMinutos") if d.get("intervaloMinutos") is not None
            else agenda["intervaloMinutos"]
        ),
    }


def normalizar_agenda(doc_id: str, raw: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Preenche ausências com padrões. Valores presentes passam intactos
    (um intervalo salvo como 0 continua 0).
    """
    raw = dict(raw or {})
    ag = dict(raw)
    ag["id"] = doc_id
    ag["nome"] = raw.get("nome") or ""
    ag["tipo"] = raw.get("tipo") if raw.get("tipo") in TIPOS_AGENDA else "aulas"
    ag["publica"] = bool(raw.get("publica"))
    ag["ativo"] = raw.get("ativo") is not False
    ag["horaInicio"] = raw.get("horaInicio") or DEFAULT_INICIO
    ag["horaFim"] = raw.get("horaFim") or DEFAULT_FIM
    iv = raw.get("intervaloMinutos")
    ag["intervaloMinutos"] = _int_ou(iv, DEFAULT_INTERVALO) if iv is not None else DEFAULT_INTERVALO
    ag["diasSemana"] = _dias_semana(raw)
    if tem_dias_detalhados(raw):
        ag["diasDetalhados"] = [_normalizar_dia_detalhado(d, ag) for d in raw["diasDetalhados"]]
    return ag


# ------------------------------------------------------------
# Formulário de agenda
# ------------------------------------------------------------
def dias_padrao() -> List[Dict[str, Any]]:
    """Seg/Qua/Sex ativos, 08:00–22:00, intervalo de 60 min."""
    return [
        {"ativo": dow in (1, 3, 5), "inicio": DEFAULT_INICIO, "fim": DEFAULT_FIM,
         "intervaloMinutos": DEFAULT_INTERVALO}
        for dow in range(7)
    ]


def validar_dias(nome: Any, dias: Any) -> None:
    if not (nome or "").strip():
        raise ValidationError("Informe o nome da agenda.")
    if not isinstance(dias, list) or len(dias) != 7:
        raise ValidationError("Configuração de dias inválida (esperado 7 dias).")

    ativos = [(i, d) for i, d in enumerate(dias) if isinstance(d, dict) and d.get("ativo")]
    if not ativos:
        raise ValidationError("Selecione pelo menos um dia ativo.")

    for i, d in ativos:
        nome_dia = NOMES_DIAS[i]
        if not d.get("inicio") or not d.get("fim"):
            raise ValidationError(f"Informe início e fim para {nome_dia}.")
        ini, fim = hhmm_para_min(d.get("inicio")), hhmm_para_min(d.get("fim"))
        if ini is None or fim is None:
            raise ValidationError(f"Horário inválido em {nome_dia}.")
        iv = _int_ou(d.get("intervaloMinutos"), 0)
        if not iv or iv <= 0:
            raise ValidationError(f"Intervalo inválido em {nome_dia}.")
        if fim <= ini:
            raise ValidationError(f"O fim deve ser maior que o início em {nome_dia}.")


def derivar_agregado(dias: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Campos agregados a partir dos dias ativos (assume validar_dias ok)."""
    ativos = [(i, d) for i, d in enumerate(dias) if d.get("ativo")]
    inicios = [normalizar_hhmm(d["inicio"]) for _, d in ativos]
    fins = [normalizar_hhmm(d["fim"]) for _, d in ativos]
    return {
        "horaInicio": min(inicios),
        "horaFim": max(fins),
        "intervaloMinutos": int(ativos[0][1]["intervaloMinutos"]),
        "diasSemana": [i for i, _ in ativos],
    }


_CAMPOS_FIXOS = ("professorId", "professorNome", "localId", "localNome", "modalidadeId", "modalidadeNome")


def _dia_para_gravar(d: Any) -> Dict[str, Any]:
    # "ativo" sempre booleano: sem a chave o dia fica inativo também na leitura
    d = d if isinstance(d, dict) else {}
    return {**d, "ativo": bool(d.get("ativo"))}


def montar_payload_agenda(form: Dict[str, Any]) -> Dict[str, Any]:
    """
    Valida o formulário e monta o documento a gravar.
    diasDetalhados é gravado como veio, só com "ativo" forçado a booleano;
    os agregados são derivados.
    """
    form = form or {}
    dias = form.get("diasDetalhados")
    validar_dias(form.get("nome"), dias)

    tipo = form.get("tipo") or "aulas"
    if tipo not in TIPOS_AGENDA:
        raise ValidationError("Tipo de agenda inválido.")

    payload = {
        "nome": form["nome"].strip(),
        "tipo": tipo,
        "publica": bool(form.get("publica")),
        "ativo": form.get("ativo") is not False,
        "diasDetalhados": [_dia_para_gravar(d) for d in dias],
    }
    for campo in _CAMPOS_FIXOS:
        payload[campo] = (form.get(campo) or "").strip() if isinstance(form.get(campo), str) else ""
    payload.update(derivar_agregado(dias))
    return payload
