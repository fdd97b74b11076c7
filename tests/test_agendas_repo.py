import pytest

from services import agendas_repo
from domain.erros import NotFound, ValidationError


def _form(**kw):
    dd = [{"ativo": False, "inicio": "08:00", "fim": "22:00", "intervaloMinutos": 0} for _ in range(7)]
    dd[3] = {"ativo": True, "inicio": "08:00", "fim": "12:00", "intervaloMinutos": 30}
    dd[5] = {"ativo": True, "inicio": "14:00", "fim": "20:00", "intervaloMinutos": 60}
    form = {"nome": "Quadra Central", "tipo": "hibrida", "diasDetalhados": dd}
    form.update(kw)
    return form


def test_salvar_e_recarregar_preserva_dias_detalhados(fake_db):
    form = _form()
    agenda_id = agendas_repo.criar_agenda(form)

    agenda = agendas_repo.obter_agenda(agenda_id)

    assert agenda["diasDetalhados"] == form["diasDetalhados"]
    assert agenda["diasDetalhados"][0]["intervaloMinutos"] == 0
    assert agenda["horaInicio"] == "08:00" and agenda["horaFim"] == "20:00"
    assert agenda["intervaloMinutos"] == 30
    assert agenda["diasSemana"] == [3, 5]
    assert agenda["tipo"] == "hibrida"


def test_listar_ordenado_por_nome(fake_db):
    agendas_repo.criar_agenda(_form(nome="Quadra B"))
    agendas_repo.criar_agenda(_form(nome="Quadra A", ativo=False))
    assert [a["nome"] for a in agendas_repo.listar_agendas()] == ["Quadra A", "Quadra B"]
    assert [a["nome"] for a in agendas_repo.listar_agendas(somente_ativas=True)] == ["Quadra B"]


def test_listar_normaliza_documento_legado(fake_db):
    fake_db.seed("agendasConfig", "old", {"nome": "Antiga", "diasSemana": ["1", "2"]})
    a = agendas_repo.listar_agendas()[0]
    assert a["horaInicio"] == "08:00" and a["intervaloMinutos"] == 60
    assert a["diasSemana"] == [1, 2] and a["tipo"] == "aulas"


def test_criar_invalida_nao_grava(fake_db):
    with pytest.raises(ValidationError):
        agendas_repo.criar_agenda(_form(nome=""))
    assert fake_db.docs("agendasConfig") == {}


def test_atualizacao_parcial(fake_db):
    agenda_id = agendas_repo.criar_agenda(_form())
    agendas_repo.atualizar_agenda(agenda_id, {"publica": True, "campoEstranho": 1})
    raw = fake_db.docs("agendasConfig")[agenda_id]
    assert raw["publica"] is True
    assert "campoEstranho" not in raw


def test_atualizar_dias_rederiva_agregado(fake_db):
    agenda_id = agendas_repo.criar_agenda(_form())
    novo = _form()["diasDetalhados"]
    novo[1] = {"ativo": True, "inicio": "06:00", "fim": "09:00", "intervaloMinutos": 15}
    agendas_repo.atualizar_agenda(agenda_id, {"diasDetalhados": novo})
    a = agendas_repo.obter_agenda(agenda_id)
    assert a["nome"] == "Quadra Central"
    assert a["horaInicio"] == "06:00" and a["intervaloMinutos"] == 15
    assert a["diasSemana"] == [1, 3, 5]


def test_excluir_e_nao_encontrada(fake_db):
    agenda_id = agendas_repo.criar_agenda(_form())
    agendas_repo.excluir_agenda(agenda_id)
    with pytest.raises(NotFound):
        agendas_repo.obter_agenda(agenda_id)
