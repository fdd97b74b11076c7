# domain/aula_form.py
# Validação do formulário de aula contra a agenda e montagem do documento.
# Mensagens vão direto para o usuário (mesma redação do painel).

from __future__ import annotations
from typing import Optional, Dict, Any, List

from domain import agenda as ag
from domain.calendario import dia_semana, parse_data
from domain.cobranca import montar_cobranca
from domain.erros import ValidationError

TIPOS_GRUPO = ("exclusiva", "compartilhada")
MODOS_ATIVIDADE = ("manual", "plano")

_CAMPOS_FIXOS = (
    ("professorId", "professorNome"),
    ("localId", "localNome"),
    ("modalidadeId", "modalidadeNome"),
)


def _str(v) -> str:
    return v.strip() if isinstance(v, str) else ""


def hora_fim_padrao(hora_inicio: str, limite_fim: str) -> str:
    """Início + 1h, sem passar do fim da janela."""
    ini = ag.hhmm_para_min(hora_inicio)
    lim = ag.hhmm_para_min(limite_fim)
    if ini is None:
        return ""
    fim = ini + 60
    if lim is not None and fim > lim:
        fim = lim
    return ag.min_para_hhmm(min(fim, 23 * 60 + 59))


def montar_aula(form: Dict[str, Any], agenda: Optional[Dict[str, Any]],
                tipos_cobranca: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Valida e devolve o payload da aula (sem id/timestamps/recorrência).
    Campos fixos da agenda (professor, local, modalidade) sobrescrevem o form.
    """
    form = dict(form or {})
    agenda = agenda or {}

    data = _str(form.get("data"))
    hi = ag.normalizar_hhmm(form.get("horaInicio"))
    hf = ag.normalizar_hhmm(form.get("horaFim"))
    if not data or not hi or not hf:
        raise ValidationError("Preencha data, horário de início e fim.")
    try:
        dow = dia_semana(parse_data(data))
    except ValueError:
        raise ValidationError("Data inválida.")

    lim_ini, lim_fim = ag.limites_horario(agenda, dow)
    if hi < lim_ini or hi > lim_fim:
        raise ValidationError(f"Horário de início deve estar entre {lim_ini} e {lim_fim} (agenda).")
    if hf < lim_ini or hf > lim_fim:
        raise ValidationError(f"Horário de término deve estar entre {lim_ini} e {lim_fim} (agenda).")
    if hf <= hi:
        raise ValidationError("O horário de término deve ser maior que o de início.")

    for campo_id, campo_nome in _CAMPOS_FIXOS:
        if agenda.get(campo_id):
            form[campo_id] = agenda[campo_id]
            form[campo_nome] = agenda.get(campo_nome) or form.get(campo_nome) or ""

    if agenda.get("tipo") != "reservas" and not _str(form.get("professorId")):
        raise ValidationError("Selecione o professor.")
    if not _str(form.get("localId")):
        raise ValidationError("Selecione o local.")
    if not _str(form.get("modalidadeId")):
        raise ValidationError("Selecione a modalidade.")

    alunos_ids = [a for a in (form.get("alunosIds") or []) if a]
    alunos_nomes = list(form.get("alunosNomes") or [])
    tipo_grupo = form.get("tipoGrupo") if form.get("tipoGrupo") in TIPOS_GRUPO else "compartilhada"
    if tipo_grupo == "exclusiva":
        capacidade = 1
        alunos_ids, alunos_nomes = alunos_ids[:1], alunos_nomes[:1]
    else:
        try:
            capacidade = int(form.get("capacidadeMaxima") or 0)
        except (TypeError, ValueError):
            capacidade = 0
        # 0 = sem limite de alunos
        capacidade = max(capacidade, 0)
        if capacidade and len(alunos_ids) > capacidade:
            raise ValidationError("A quantidade de alunos excede a capacidade máxima da turma.")

    cobranca = montar_cobranca(form, tipos_cobranca, len(alunos_ids))

    fonte = form.get("atividadeFonte") if form.get("atividadeFonte") in MODOS_ATIVIDADE else "manual"
    texto = _str(form.get("atividadeTexto"))
    if not texto:
        raise ValidationError("Descreva a atividade da aula.")

    payload = {
        "data": data,
        "horaInicio": hi,
        "horaFim": hf,
        "agendaId": agenda.get("id") or _str(form.get("agendaId")),
        "agendaNome": agenda.get("nome") or _str(form.get("agendaNome")),
        "professorId": _str(form.get("professorId")),
        "professorNome": _str(form.get("professorNome")),
        "localId": _str(form.get("localId")),
        "localNome": _str(form.get("localNome")),
        "modalidadeId": _str(form.get("modalidadeId")),
        "modalidadeNome": _str(form.get("modalidadeNome")),
        "alunosIds": alunos_ids,
        "alunosNomes": alunos_nomes,
        "tipoGrupo": tipo_grupo,
        "capacidadeMaxima": capacidade,
        "ativa": form.get("ativa") is not False,
        "inscricaoAberta": bool(form.get("inscricaoAberta")),
        "recorrente": bool(form.get("recorrente")),
        "atividadeFonte": fonte,
        "atividadePlanoId": _str(form.get("atividadePlanoId")) if fonte == "plano" else "",
        "atividadeTitulo": _str(form.get("atividadeTitulo")),
        "atividadeTexto": texto,
        "observacao": _str(form.get("observacao")),
    }
    payload.update(cobranca)
    return payload
