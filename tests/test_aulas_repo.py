from datetime import date

import pytest

from services import aulas_repo
from domain.erros import NotFound, ValidationError


def _serie(fake_db, datas, repetir_id="X", **extra):
    for i, d in enumerate(datas):
        doc = {"data": d, "horaInicio": "08:00", "recorrente": True, "repetirId": repetir_id}
        doc.update(extra)
        fake_db.seed("aulas", f"{repetir_id}{i}", doc)


def _datas(fake_db):
    return sorted(d["data"] for d in fake_db.docs("aulas").values())


def test_materializa_duas_semanas_sem_irmas(fake_db):
    _serie(fake_db, ["2024-01-01"], atividadeTexto="primeira")
    base = aulas_repo.obter_aula("X0")

    criadas = aulas_repo.garantir_recorrencia_adiante(base, hoje=date(2024, 1, 1), semanas=2)

    assert len(criadas) == 2
    assert _datas(fake_db) == ["2024-01-01", "2024-01-08", "2024-01-15"]
    novas = [fake_db.docs("aulas")[i] for i in criadas]
    assert all(n["repetirId"] == "X" and n["atividadeTexto"] == "" for n in novas)
    assert all("id" not in n for n in novas)


def test_materializacao_repetida_nao_duplica(fake_db):
    _serie(fake_db, ["2024-01-01"])
    base = aulas_repo.obter_aula("X0")
    aulas_repo.garantir_recorrencia_adiante(base, hoje=date(2024, 1, 1), semanas=2)
    assert aulas_repo.garantir_recorrencia_adiante(base, hoje=date(2024, 1, 1), semanas=2) == []
    assert len(_datas(fake_db)) == 3


def test_nao_recorrente_nao_materializa(fake_db):
    fake_db.seed("aulas", "u", {"data": "2024-01-01", "recorrente": False, "repetirId": ""})
    assert aulas_repo.garantir_recorrencia_adiante(aulas_repo.obter_aula("u"), hoje=date(2024, 1, 1)) == []


def test_expandir_processa_cada_serie_uma_vez(fake_db, monkeypatch):
    monkeypatch.setenv("RECORRENCIA_JANELA_SEMANAS", "1")
    _serie(fake_db, ["2024-01-01"], repetir_id="A")
    _serie(fake_db, ["2024-01-01"], repetir_id="B")
    aulas = aulas_repo.listar_aulas_por_data("2024-01-01")
    aulas.append(dict(aulas[0]))

    criadas = aulas_repo.expandir_recorrencias(aulas, hoje=date(2024, 1, 1))

    assert len(criadas) == 2
    assert _datas(fake_db) == ["2024-01-01", "2024-01-01", "2024-01-08", "2024-01-08"]


def test_excluir_esta_e_futuras(fake_db):
    _serie(fake_db, ["2024-01-01", "2024-01-08", "2024-01-15"])
    apagadas = aulas_repo.excluir_aula("X1", "esta-e-futuras")
    assert sorted(apagadas) == ["X1", "X2"]
    assert _datas(fake_db) == ["2024-01-01"]


def test_excluir_so_esta(fake_db):
    _serie(fake_db, ["2024-01-01", "2024-01-08"])
    assert aulas_repo.excluir_aula("X0", "so-esta") == ["X0"]
    assert _datas(fake_db) == ["2024-01-08"]


def test_excluir_recorrente_sem_modo_nao_apaga(fake_db):
    _serie(fake_db, ["2024-01-01", "2024-01-08"])
    with pytest.raises(ValidationError):
        aulas_repo.excluir_aula("X0")
    assert len(_datas(fake_db)) == 2


def test_excluir_futuras_sem_data_apaga_serie_toda(fake_db):
    _serie(fake_db, ["2024-01-01", "2024-01-08"])
    fake_db.seed("aulas", "semdata", {"recorrente": True, "repetirId": "X"})
    apagadas = aulas_repo.excluir_aula("semdata", "esta-e-futuras")
    assert len(apagadas) == 3
    assert fake_db.docs("aulas") == {}


def test_excluir_avulsa(fake_db):
    fake_db.seed("aulas", "u", {"data": "2024-01-01", "recorrente": False})
    assert aulas_repo.excluir_aula("u", "esta-e-futuras") == ["u"]
    with pytest.raises(NotFound):
        aulas_repo.obter_aula("u")


def test_criar_recorrente_gera_cinco_semanas(fake_db):
    ids = aulas_repo.criar_aula({"data": "2024-01-01", "horaInicio": "08:00", "recorrente": True,
                                 "atividadeTexto": "t"})
    docs = fake_db.docs("aulas")
    assert len(ids) == 5
    rids = {d["repetirId"] for d in docs.values()}
    assert len(rids) == 1 and rids.pop().startswith("rep_")
    assert docs[ids[0]]["atividadeTexto"] == "t"
    assert docs[ids[1]]["atividadeTexto"] == ""


def test_criar_avulsa_sem_repetir_id(fake_db):
    ids = aulas_repo.criar_aula({"data": "2024-01-01", "horaInicio": "08:00"})
    doc = fake_db.docs("aulas")[ids[0]]
    assert doc["repetirId"] == "" and doc["recorrente"] is False
    assert doc["criadoEm"].endswith("Z")


def test_atualizar_esta_e_futuras_preserva_data_das_irmas(fake_db):
    _serie(fake_db, ["2024-01-01", "2024-01-08", "2024-01-15"], atividadeTexto="x")
    ids = aulas_repo.atualizar_aula(
        "X1", {"data": "2024-01-08", "horaInicio": "09:00", "recorrente": True, "atividadeTexto": "nova"},
        "esta-e-futuras")
    docs = fake_db.docs("aulas")
    assert sorted(ids) == ["X1", "X2"]
    assert docs["X0"]["horaInicio"] == "08:00"
    assert docs["X1"]["horaInicio"] == "09:00" and docs["X1"]["atividadeTexto"] == "nova"
    assert docs["X2"]["horaInicio"] == "09:00" and docs["X2"]["data"] == "2024-01-15"
    assert docs["X2"]["atividadeTexto"] == "x"


def test_atualizar_escopo_invalido(fake_db):
    _serie(fake_db, ["2024-01-01"])
    with pytest.raises(ValidationError):
        aulas_repo.atualizar_aula("X0", {"horaInicio": "09:00"}, "todas")


def test_job_mantem_cinco_futuras(fake_db):
    _serie(fake_db, ["2024-01-01", "2024-01-08"], repetir_id="S")
    fake_db.seed("aulas", "avulsa", {"data": "2024-01-08", "recorrente": False, "repetirId": ""})

    stats = aulas_repo.manter_janela_recorrencias(hoje=date(2024, 1, 8))

    assert stats == {"series": 1, "criadas": 4}
    serie = sorted(d["data"] for d in fake_db.docs("aulas").values() if d.get("repetirId") == "S")
    assert serie == ["2024-01-01", "2024-01-08", "2024-01-15", "2024-01-22", "2024-01-29", "2024-02-05"]
    assert aulas_repo.manter_janela_recorrencias(hoje=date(2024, 1, 8))["criadas"] == 0


def test_materializar_serie_ja_apagada_nao_cria(fake_db):
    _serie(fake_db, ["2024-01-01"])
    base = aulas_repo.obter_aula("X0")
    aulas_repo.excluir_aula("X0", "so-esta")

    assert aulas_repo.garantir_recorrencia_adiante(base, hoje=date(2024, 1, 1), semanas=2) == []
    assert _datas(fake_db) == []
