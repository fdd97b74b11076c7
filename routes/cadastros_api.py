# routes/cadastros_api.py
# Cadastros de apoio: /api/locais, /api/modalidades, /api/tipos-cobranca,
# /api/alunos, /api/planos-aula.

import logging
from flask import Blueprint, request, jsonify

from services.auth import auth_required
from services import catalogo
from domain.cobranca import tabelas_base
from domain.erros import AppError

cadastros_api_bp = Blueprint("cadastros_api_bp", __name__, url_prefix="/api")

log = logging.getLogger(__name__)

# segmento da URL -> tipo em services.catalogo
_SEGMENTOS = {
    "locais": "locais",
    "modalidades": "modalidades",
    "tipos-cobranca": "tiposCobranca",
}
_SEG = '/<any(locais, modalidades, "tipos-cobranca"):segmento>'


def _erro(e: AppError):
    return jsonify({"ok": False, "error": e.message}), e.status


# ---------------------------------------------------------------------
# Locais / modalidades / tipos de cobrança
# ---------------------------------------------------------------------
@cadastros_api_bp.route(_SEG, methods=["GET"])
@auth_required
def listar(segmento):
    tipo = _SEGMENTOS[segmento]
    somente_ativos = request.args.get("ativos") in ("1", "true")
    try:
        itens = catalogo.listar(tipo, somente_ativos)
    except Exception:
        log.exception("[cadastros_api] falha ao listar %s", tipo)
        return jsonify({"ok": False, "error": "Erro ao carregar cadastros."}), 500
    resp = {"ok": True, "itens": itens}
    if tipo == "tiposCobranca":
        resp["tabelasBase"] = tabelas_base(itens)
    return jsonify(resp), 200


@cadastros_api_bp.route(_SEG, methods=["POST"])
@auth_required
def criar(segmento):
    tipo = _SEGMENTOS[segmento]
    body = request.get_json(silent=True) or {}
    try:
        return jsonify({"ok": True, "id": catalogo.criar(tipo, body)}), 201
    except AppError as e:
        return _erro(e)
    except Exception:
        log.exception("[cadastros_api] falha ao criar %s", tipo)
        return jsonify({"ok": False, "error": "Erro ao salvar o cadastro."}), 500


@cadastros_api_bp.route(_SEG + "/<item_id>", methods=["PATCH", "PUT"])
@auth_required
def atualizar(segmento, item_id):
    tipo = _SEGMENTOS[segmento]
    body = request.get_json(silent=True) or {}
    try:
        if set(body) == {"ativo"}:
            catalogo.alterar_status(tipo, item_id, bool(body["ativo"]))
        else:
            catalogo.atualizar(tipo, item_id, body)
        return jsonify({"ok": True, "id": item_id}), 200
    except AppError as e:
        return _erro(e)
    except Exception:
        log.exception("[cadastros_api] falha ao atualizar %s/%s", tipo, item_id)
        return jsonify({"ok": False, "error": "Erro ao salvar o cadastro."}), 500


@cadastros_api_bp.route(_SEG + "/<item_id>", methods=["DELETE"])
@auth_required
def excluir(segmento, item_id):
    tipo = _SEGMENTOS[segmento]
    try:
        catalogo.excluir(tipo, item_id)
        return jsonify({"ok": True}), 200
    except AppError as e:
        return _erro(e)
    except Exception:
        log.exception("[cadastros_api] falha ao excluir %s/%s", tipo, item_id)
        return jsonify({"ok": False, "error": "Erro ao excluir o cadastro."}), 500


# ---------------------------------------------------------------------
# Alunos
# ---------------------------------------------------------------------
@cadastros_api_bp.route("/alunos", methods=["GET"])
@auth_required
def listar_alunos():
    try:
        return jsonify({"ok": True, "alunos": catalogo.listar_alunos(request.args.get("status"))}), 200
    except Exception:
        log.exception("[cadastros_api] falha ao listar alunos")
        return jsonify({"ok": False, "error": "Erro ao carregar alunos."}), 500


@cadastros_api_bp.route("/alunos", methods=["POST"])
@auth_required
def criar_aluno():
    body = request.get_json(silent=True) or {}
    try:
        return jsonify({"ok": True, "id": catalogo.criar_aluno(body)}), 201
    except AppError as e:
        return _erro(e)
    except Exception:
        log.exception("[cadastros_api] falha ao criar aluno")
        return jsonify({"ok": False, "error": "Erro ao salvar o aluno."}), 500


@cadastros_api_bp.route("/alunos/<aluno_id>", methods=["PATCH", "PUT"])
@auth_required
def atualizar_aluno(aluno_id):
    body = request.get_json(silent=True) or {}
    try:
        catalogo.atualizar_aluno(aluno_id, body)
        return jsonify({"ok": True, "id": aluno_id}), 200
    except AppError as e:
        return _erro(e)
    except Exception:
        log.exception("[cadastros_api] falha ao atualizar aluno %s", aluno_id)
        return jsonify({"ok": False, "error": "Erro ao salvar o aluno."}), 500


# ---------------------------------------------------------------------
# Planos de aula
# ---------------------------------------------------------------------
@cadastros_api_bp.route("/planos-aula", methods=["GET"])
@auth_required
def listar_planos():
    try:
        return jsonify({"ok": True, "planos": catalogo.listar_planos(request.args.get("modalidadeId"))}), 200
    except Exception:
        log.exception("[cadastros_api] falha ao listar planos de aula")
        return jsonify({"ok": False, "error": "Erro ao carregar planos de aula."}), 500


@cadastros_api_bp.route("/planos-aula", methods=["POST"])
@auth_required
def criar_plano():
    body = request.get_json(silent=True) or {}
    try:
        return jsonify({"ok": True, "id": catalogo.criar_plano(body)}), 201
    except AppError as e:
        return _erro(e)
    except Exception:
        log.exception("[cadastros_api] falha ao criar plano de aula")
        return jsonify({"ok": False, "error": "Erro ao salvar o plano de aula."}), 500
