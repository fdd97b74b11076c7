# routes/aulas_api.py
# Rotas: /api/aulas (lista por data, criação), /api/aulas/<id> (edição/exclusão
# com escopo de série), /api/aulas/recorrencias/expandir.

import logging
from flask import Blueprint, request, jsonify

from services.auth import auth_required
from services import agendas_repo, aulas_repo, catalogo
from domain.aula_form import montar_aula
from domain.calendario import parse_data
from domain.erros import AppError

aulas_api_bp = Blueprint("aulas_api_bp", __name__, url_prefix="/api/aulas")

log = logging.getLogger(__name__)


def _erro(e: AppError):
    return jsonify({"ok": False, "error": e.message}), e.status


def _validar(body: dict) -> dict:
    agenda = agendas_repo.obter_agenda(body.get("agendaId")) if body.get("agendaId") else None
    tipos = catalogo.listar("tiposCobranca", somente_ativos=True)
    return montar_aula(body, agenda, tipos)


def _salvar_plano_manual(payload: dict) -> None:
    """Atividade digitada à mão vira plano reutilizável (tema + texto)."""
    if payload.get("atividadeFonte") != "manual":
        return
    if not payload.get("atividadeTitulo") or not payload.get("atividadeTexto"):
        return
    try:
        catalogo.criar_plano({
            "modalidadeId": payload.get("modalidadeId"),
            "tema": payload["atividadeTitulo"],
            "atividades": payload["atividadeTexto"],
        })
    except Exception:
        log.exception("[aulas_api] falha ao salvar plano de aula manual")


@aulas_api_bp.route("", methods=["GET"])
@auth_required
def listar():
    data = (request.args.get("data") or "").strip()
    try:
        parse_data(data)
    except ValueError:
        return jsonify({"ok": False, "error": "Informe a data (YYYY-MM-DD)."}), 400
    try:
        aulas = aulas_repo.listar_aulas_por_data(data, request.args.get("agendaId"))
        return jsonify({"ok": True, "aulas": aulas}), 200
    except Exception:
        log.exception("[aulas_api] falha ao listar aulas de %s", data)
        return jsonify({"ok": False, "error": "Erro ao carregar aulas."}), 500


@aulas_api_bp.route("/<aula_id>", methods=["GET"])
@auth_required
def obter(aula_id):
    try:
        return jsonify({"ok": True, "aula": aulas_repo.obter_aula(aula_id)}), 200
    except AppError as e:
        return _erro(e)


@aulas_api_bp.route("", methods=["POST"])
@auth_required
def criar():
    body = request.get_json(silent=True) or {}
    try:
        payload = _validar(body)
        ids = aulas_repo.criar_aula(payload)
    except AppError as e:
        return _erro(e)
    except Exception:
        log.exception("[aulas_api] falha ao criar aula")
        return jsonify({"ok": False, "error": "Erro ao salvar a aula."}), 500
    _salvar_plano_manual(payload)
    return jsonify({"ok": True, "ids": ids}), 201


@aulas_api_bp.route("/<aula_id>", methods=["PATCH", "PUT"])
@auth_required
def atualizar(aula_id):
    body = request.get_json(silent=True) or {}
    escopo = request.args.get("escopo") or body.pop("escopo", None)
    try:
        payload = _validar(body)
        ids = aulas_repo.atualizar_aula(aula_id, payload, escopo)
        return jsonify({"ok": True, "ids": ids}), 200
    except AppError as e:
        return _erro(e)
    except Exception:
        log.exception("[aulas_api] falha ao atualizar aula %s", aula_id)
        return jsonify({"ok": False, "error": "Erro ao salvar a aula."}), 500


@aulas_api_bp.route("/<aula_id>", methods=["DELETE"])
@auth_required
def excluir(aula_id):
    modo = request.args.get("modo")
    try:
        ids = aulas_repo.excluir_aula(aula_id, modo)
        return jsonify({"ok": True, "excluidas": ids}), 200
    except AppError as e:
        return _erro(e)
    except Exception:
        log.exception("[aulas_api] falha ao excluir aula %s", aula_id)
        return jsonify({"ok": False, "error": "Erro ao excluir a aula."}), 500


@aulas_api_bp.route("/recorrencias/expandir", methods=["POST"])
@auth_required
def expandir():
    """Chamado pelo painel ao carregar um dia que contém aula recorrente."""
    body = request.get_json(silent=True) or {}
    data = (body.get("data") or "").strip()
    try:
        parse_data(data)
    except ValueError:
        return jsonify({"ok": False, "error": "Informe a data (YYYY-MM-DD)."}), 400
    try:
        aulas = aulas_repo.listar_aulas_por_data(data, body.get("agendaId"))
        criadas = aulas_repo.expandir_recorrencias(aulas)
        return jsonify({"ok": True, "criadas": criadas}), 200
    except Exception:
        log.exception("[aulas_api] falha ao expandir recorrências de %s", data)
        return jsonify({"ok": False, "error": "Erro ao gerar aulas recorrentes."}), 500
