from datetime import date

from domain import recorrencia as rec


def test_novo_repetir_id_formato():
    rid = rec.novo_repetir_id(1700000000000)
    prefixo, ms, sufixo = rid.split("_")
    assert prefixo == "rep" and ms == "1700000000000"
    assert len(sufixo) == 6 and sufixo.isalnum()


def test_materializa_ate_o_horizonte():
    datas = rec.datas_a_materializar("2024-01-01", [], date(2024, 1, 1), 2)
    assert datas == ["2024-01-08", "2024-01-15"]


def test_materializa_a_partir_da_maior_irma():
    datas = rec.datas_a_materializar("2024-01-01", ["2024-01-01", "2024-01-08"], date(2024, 1, 1), 2)
    assert datas == ["2024-01-15"]


def test_nada_a_fazer_quando_ja_cobre_o_horizonte():
    assert rec.datas_a_materializar("2024-01-01", ["2024-01-15"], date(2024, 1, 1), 2) == []


def test_janela_semanas():
    assert rec.janela_semanas({"repetirJanelaSemanas": 5}) == 5
    assert rec.janela_semanas({"repetirJanelaSemanas": 0}) == 12
    assert rec.janela_semanas({}, semanas=3) == 3


def test_copia_limpa_atividade_e_id():
    base = {
        "id": "x", "data": "2024-01-01", "repetirId": "R", "atividadeFonte": "plano",
        "atividadePlanoId": "p", "atividadeTitulo": "t", "atividadeTexto": "txt", "observacao": "o",
    }
    c = rec.copiar_ocorrencia(base, "2024-01-08", "TS")
    assert "id" not in c
    assert c["data"] == "2024-01-08" and c["repetirId"] == "R"
    assert c["atividadeFonte"] == "manual"
    assert all(c[k] == "" for k in rec.CAMPOS_ATIVIDADE)
    assert c["criadoEm"] == c["atualizadoEm"] == "TS"
    assert base["atividadeTexto"] == "txt"


def test_ocorrencias_iniciais_cinco_semanas():
    payload = {"data": "2024-01-01", "atividadeTexto": "aquecimento", "observacao": "obs"}
    docs = rec.ocorrencias_iniciais(payload, "R", "TS")
    assert [d["data"] for d in docs] == ["2024-01-01", "2024-01-08", "2024-01-15", "2024-01-22", "2024-01-29"]
    assert all(d["repetirId"] == "R" and d["recorrente"] and d["repetirJanelaSemanas"] == 5 for d in docs)
    assert docs[0]["atividadeTexto"] == "aquecimento"
    assert all(d["atividadeTexto"] == "" and d["observacao"] == "" for d in docs[1:])


def test_datas_para_manter_completa_cinco_futuras():
    existentes = ["2024-01-01", "2024-01-08", "2024-01-15"]
    assert rec.datas_para_manter(existentes, date(2024, 1, 8)) == ["2024-01-22", "2024-01-29", "2024-02-05"]


def test_datas_para_manter_serie_parada_retoma_a_partir_de_hoje():
    assert rec.datas_para_manter(["2024-01-01"], date(2024, 2, 1), minimo=2) == ["2024-02-05", "2024-02-12"]


def test_datas_para_manter_nada_quando_ja_tem():
    existentes = [f"2024-01-{d:02d}" for d in (1, 8, 15, 22, 29)]
    assert rec.datas_para_manter(existentes, date(2024, 1, 1)) == []
