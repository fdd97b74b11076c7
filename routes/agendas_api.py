# routes/agendas_api.py
# Rotas: /api/agendas (CRUD), /api/agendas/<id>/dia/<dow>, /api/agendas/<id>/grade,
# /api/agendas/<id>/visao (mês/semana/dia com células clicáveis).
# Protegidas por bearer (auth_required).

import logging
from flask import Blueprint, request, jsonify

from services.auth import auth_required
from services import agendas_repo
from services import aulas_repo
from domain import agenda as ag
from domain import calendario as cal
from domain.erros import AppError

agendas_api_bp = Blueprint("agendas_api_bp", __name__, url_prefix="/api/agendas")

log = logging.getLogger(__name__)


def _erro(e: AppError):
    return jsonify({"ok": False, "error": e.message}), e.status


# ---------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------
@agendas_api_bp.route("", methods=["GET"])
@auth_required
def listar():
    somente_ativas = request.args.get("ativas") in ("1", "true")
    try:
        return jsonify({"ok": True, "agendas": agendas_repo.listar_agendas(somente_ativas)}), 200
    except Exception:
        log.exception("[agendas_api] falha ao listar agendas")
        return jsonify({"ok": False, "error": "Erro ao carregar agendas."}), 500


@agendas_api_bp.route("", methods=["POST"])
@auth_required
def criar():
    body = request.get_json(silent=True) or {}
    try:
        agenda_id = agendas_repo.criar_agenda(body)
        return jsonify({"ok": True, "id": agenda_id}), 201
    except AppError as e:
        return _erro(e)
    except Exception:
        log.exception("[agendas_api] falha ao criar agenda")
        return jsonify({"ok": False, "error": "Erro ao salvar a agenda."}), 500


@agendas_api_bp.route("/padrao", methods=["GET"])
@auth_required
def padrao():
    """Configuração inicial do formulário de nova agenda."""
    dias = ag.dias_padrao()
    return jsonify({"ok": True, "diasDetalhados": dias, **ag.derivar_agregado(dias)}), 200


@agendas_api_bp.route("/<agenda_id>", methods=["GET"])
@auth_required
def obter(agenda_id):
    try:
        return jsonify({"ok": True, "agenda": agendas_repo.obter_agenda(agenda_id)}), 200
    except AppError as e:
        return _erro(e)
    except Exception:
        log.exception("[agendas_api] falha ao carregar agenda %s", agenda_id)
        return jsonify({"ok": False, "error": "Erro ao carregar a agenda."}), 500


@agendas_api_bp.route("/<agenda_id>", methods=["PATCH", "PUT"])
@auth_required
def atualizar(agenda_id):
    body = request.get_json(silent=True) or {}
    try:
        agendas_repo.atualizar_agenda(agenda_id, body)
        return jsonify({"ok": True, "id": agenda_id}), 200
    except AppError as e:
        return _erro(e)
    except Exception:
        log.exception("[agendas_api] falha ao atualizar agenda %s", agenda_id)
        return jsonify({"ok": False, "error": "Erro ao salvar a agenda."}), 500


@agendas_api_bp.route("/<agenda_id>", methods=["DELETE"])
@auth_required
def excluir(agenda_id):
    try:
        agendas_repo.excluir_agenda(agenda_id)
        return jsonify({"ok": True}), 200
    except AppError as e:
        return _erro(e)
    except Exception:
        log.exception("[agendas_api] falha ao excluir agenda %s", agenda_id)
        return jsonify({"ok": False, "error": "Erro ao excluir a agenda."}), 500


# ---------------------------------------------------------------------
# Disponibilidade
# ---------------------------------------------------------------------
@agendas_api_bp.route("/<agenda_id>/dia/<int:dow>", methods=["GET"])
@auth_required
def dia(agenda_id, dow):
    if dow < 0 or dow > 6:
        return jsonify({"ok": False, "error": "Dia da semana inválido (0=domingo..6=sábado)."}), 400
    try:
        agenda = agendas_repo.obter_agenda(agenda_id)
    except AppError as e:
        return _erro(e)
    resolvido = ag.resolver_dia(agenda, dow)
    return jsonify({"ok": True, "dow": dow, "ativo": resolvido is not None, "dia": resolvido}), 200


@agendas_api_bp.route("/<agenda_id>/grade", methods=["GET"])
@auth_required
def grade(agenda_id):
    try:
        agenda = agendas_repo.obter_agenda(agenda_id)
    except AppError as e:
        return _erro(e)
    faixas = {}
    for dow in range(7):
        f = ag.faixa_horaria_dia(agenda, dow)
        faixas[str(dow)] = {"inicio": ag.min_para_hhmm(f[0]), "fim": ag.min_para_hhmm(f[1])} if f else None
    return jsonify({"ok": True, "grade": ag.grade_semanal(agenda), "faixas": faixas}), 200


@agendas_api_bp.route("/<agenda_id>/visao", methods=["GET"])
@auth_required
def visao(agenda_id):
    modo = (request.args.get("modo") or "semana").strip().lower()
    if modo not in cal.MODOS:
        return jsonify({"ok": False, "error": "Modo inválido (mes, semana ou dia)."}), 400
    try:
        base = cal.parse_data(request.args["base"]) if request.args.get("base") else aulas_repo.hoje_local()
    except ValueError:
        return jsonify({"ok": False, "error": "Data base inválida (YYYY-MM-DD)."}), 400

    try:
        agenda = agendas_repo.obter_agenda(agenda_id)
        ini, fim = cal.intervalo_periodo(modo, base)
        aulas = aulas_repo.listar_aulas_periodo(ini.isoformat(), fim.isoformat())
        return jsonify({"ok": True, "visao": cal.montar_visao(modo, agenda, aulas, base)}), 200
    except AppError as e:
        return _erro(e)
    except Exception:
        log.exception("[agendas_api] falha ao montar visão %s/%s", agenda_id, modo)
        return jsonify({"ok": False, "error": "Erro ao carregar o calendário."}), 500
