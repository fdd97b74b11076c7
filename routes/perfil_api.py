# routes/perfil_api.py
# Rotas auxiliares do login e dos formulários:
#   POST /api/perfil/por-cpf  -> {id, email, tipo, colecao} (sem auth: passo 1 do login)
#   GET  /api/cep/<cep>       -> endereço via ViaCEP

import logging
from flask import Blueprint, request, jsonify

from services.auth import auth_required
from services import pessoas
from services.cep_client import fetch_cep_info
from domain.erros import AppError

perfil_api_bp = Blueprint("perfil_api_bp", __name__, url_prefix="/api")

log = logging.getLogger(__name__)


@perfil_api_bp.route("/perfil/por-cpf", methods=["POST"])
def perfil_por_cpf():
    body = request.get_json(silent=True) or {}
    try:
        perfil = pessoas.buscar_perfil_por_cpf(body.get("cpf"))
    except AppError as e:
        return jsonify({"ok": False, "error": e.message}), e.status
    except Exception:
        log.exception("[perfil_api] falha ao buscar perfil por CPF")
        return jsonify({"ok": False, "error": "Erro ao buscar cadastro."}), 500
    if not perfil:
        return jsonify({"ok": False, "error": "CPF não encontrado."}), 404
    return jsonify({"ok": True, "perfil": perfil}), 200


@perfil_api_bp.route("/cep/<cep>", methods=["GET"])
@auth_required
def cep(cep):
    info = fetch_cep_info(cep)
    if not info:
        return jsonify({"ok": False, "error": "CEP não encontrado."}), 404
    return jsonify({"ok": True, **info}), 200
