from datetime import date

from domain import calendario as cal

# 2024-01-03 é quarta; 2024-01-07 é domingo
QUARTA = date(2024, 1, 3)
DOMINGO = date(2024, 1, 7)


def _aula(**kw):
    base = {
        "id": "a1", "data": "2024-01-03", "horaInicio": "08:00", "horaFim": "09:00",
        "agendaId": "ag1", "professorId": "p1", "localId": "l1", "modalidadeId": "m1",
    }
    base.update(kw)
    return base


def test_dia_semana_domingo_zero():
    assert cal.dia_semana(DOMINGO) == 0
    assert cal.dia_semana(QUARTA) == 3


def test_grade_mes_seis_semanas_comecando_no_domingo():
    g = cal.grade_mes(date(2024, 2, 15))
    assert len(g) == 6 and all(len(s) == 7 for s in g)
    assert g[0][0] == date(2024, 1, 28)
    assert cal.dia_semana(g[0][0]) == 0


def test_semana_domingo_a_sabado():
    dias = cal.dias_da_semana(QUARTA)
    assert dias[0] == date(2023, 12, 31)
    assert dias[-1] == date(2024, 1, 6)


def test_navegacao_de_periodo():
    assert cal.avancar_periodo("mes", date(2024, 1, 31)) == date(2024, 2, 29)
    assert cal.voltar_periodo("semana", QUARTA) == date(2023, 12, 27)
    assert cal.avancar_periodo("dia", QUARTA) == date(2024, 1, 4)


def test_titulos():
    assert cal.titulo_periodo("mes", QUARTA) == "janeiro de 2024"
    assert cal.titulo_periodo("dia", QUARTA) == "Quarta, 03/01/2024"


def test_aula_encaixa_na_agenda(agenda_detalhada):
    assert cal.aula_encaixa_na_agenda(_aula(), agenda_detalhada)
    assert not cal.aula_encaixa_na_agenda(_aula(horaInicio="06:00"), agenda_detalhada)
    assert not cal.aula_encaixa_na_agenda(_aula(horaInicio="21:30"), agenda_detalhada)

    agenda_detalhada["professorId"] = "p2"
    assert not cal.aula_encaixa_na_agenda(_aula(), agenda_detalhada)


def test_agenda_de_reservas_nao_recebe_aulas(agenda_detalhada):
    agenda_detalhada["tipo"] = "reservas"
    assert not cal.aula_encaixa_na_agenda(_aula(), agenda_detalhada)
    assert not cal.agenda_aceita_aulas(agenda_detalhada)


def test_aulas_do_dia_filtra_data_agenda_e_inativas(agenda_detalhada):
    aulas = [
        _aula(id="ok"),
        _aula(id="outra_data", data="2024-01-04"),
        _aula(id="outra_agenda", agendaId="ag2"),
        _aula(id="inativa", ativa=False),
        _aula(id="sem_agenda", agendaId="", horaInicio="09:00"),
    ]
    ids = [a["id"] for a in cal.aulas_do_dia(aulas, agenda_detalhada, "2024-01-03")]
    assert ids == ["ok", "sem_agenda"]


def test_acao_clique():
    assert cal.acao_clique({"dentroFaixa": True, "ocupado": False}, True) == "criar"
    assert cal.acao_clique({"dentroFaixa": True, "ocupado": False}, False) is None
    assert cal.acao_clique({"dentroFaixa": True, "ocupado": True}, False) == "detalhe"
    assert cal.acao_clique({"dentroFaixa": False, "ocupado": True}, True) is None


def test_visao_semana_clique_quarta_sim_domingo_nao(agenda_detalhada):
    v = cal.visao_semana(agenda_detalhada, [], QUARTA)
    linha_8 = next(l for l in v["linhas"] if l["hora"] == "08:00")
    domingo, quarta = linha_8["celulas"][0], linha_8["celulas"][3]

    assert quarta["data"] == "2024-01-03"
    assert quarta["dentroFaixa"] and quarta["acao"] == "criar"
    assert quarta["prefill"] == {"data": "2024-01-03", "horaInicio": "08:00"}

    # 08:00 existe na grade, mas domingo está inativo
    assert domingo["data"] == "2023-12-31"
    assert not domingo["dentroFaixa"] and domingo["acao"] is None


def test_visao_semana_celula_ocupada_abre_detalhe(agenda_detalhada):
    v = cal.visao_semana(agenda_detalhada, [_aula()], QUARTA)
    linha_8 = next(l for l in v["linhas"] if l["hora"] == "08:00")
    cel = linha_8["celulas"][3]
    assert cel["ocupado"] and cel["acao"] == "detalhe"
    assert cel["aulas"][0]["id"] == "a1"


def test_visao_dia_inativo(agenda_detalhada):
    v = cal.visao_dia(agenda_detalhada, [], DOMINGO)
    assert v["ativo"] is False
    assert v["mensagem"] == "Agenda não ativa para este dia."
    assert v["linhas"] == []


def test_visao_dia_fora_da_janela_nao_cria(agenda_detalhada):
    v = cal.visao_dia(agenda_detalhada, [], QUARTA)
    por_hora = {c["hora"]: c for c in v["linhas"]}
    assert por_hora["08:00"]["acao"] == "criar"
    assert por_hora["13:00"]["acao"] is None


def test_visao_mes_limita_tres_aulas_por_dia(agenda_detalhada):
    aulas = [_aula(id=f"a{i}", horaInicio=f"0{8 + i}:00" if 8 + i < 10 else f"{8 + i}:00") for i in range(4)]
    v = cal.visao_mes(agenda_detalhada, aulas, QUARTA)
    celula = next(c for s in v["semanas"] for c in s if c["data"] == "2024-01-03")
    assert len(celula["aulas"]) == 3
    assert celula["extras"] == 1
    assert celula["doMes"] is True


def test_montar_visao_traz_navegacao(agenda_detalhada):
    v = cal.montar_visao("semana", agenda_detalhada, [], QUARTA)
    assert v["anterior"] == "2023-12-27"
    assert v["proximo"] == "2024-01-10"
