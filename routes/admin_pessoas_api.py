# routes/admin_pessoas_api.py
# Rotas privilegiadas (admin_required): colaboradores e responsáveis com
# conta de login no Firebase Auth.
#   POST   /api/admin/colaboradores/novo
#   PATCH  /api/admin/colaboradores/<id>
#   DELETE /api/admin/colaboradores/<id>
#   POST   /api/admin/responsaveis/novo
#   PATCH  /api/admin/responsaveis/<id>
#   DELETE /api/admin/responsaveis/<id>
#   POST   /api/admin/responsaveis/sync-auth   {action: create|updateEmail, email, oldEmail?}

import logging
from flask import Blueprint, request, jsonify
from google.api_core import exceptions as gexc

from services.auth import admin_required
from services import pessoas
from domain.erros import AppError

admin_pessoas_bp = Blueprint("admin_pessoas_bp", __name__, url_prefix="/api/admin")

log = logging.getLogger(__name__)

# segmento da URL -> tipo em services.pessoas
_TIPOS = {"colaboradores": "colaborador", "responsaveis": "responsavel"}
_SEG = "/<any(colaboradores, responsaveis):segmento>"

_MSG_ERRO = {
    "colaborador": "Erro interno ao salvar o colaborador.",
    "responsavel": "Erro interno ao salvar o responsável.",
}
_MSG_PERMISSAO = "Sem permissão para gravar no banco de dados."


def _falha(tipo: str, acao: str, e: Exception):
    """Infra (Firestore/Auth) -> 500 com mensagem genérica."""
    if isinstance(e, gexc.PermissionDenied):
        log.exception("[admin_pessoas] permissão negada ao %s %s", acao, tipo)
        return jsonify({"ok": False, "error": _MSG_PERMISSAO}), 500
    log.exception("[admin_pessoas] falha ao %s %s", acao, tipo)
    return jsonify({"ok": False, "error": _MSG_ERRO[tipo]}), 500


@admin_pessoas_bp.route(_SEG + "/novo", methods=["POST"])
@admin_required
def criar(segmento):
    tipo = _TIPOS[segmento]
    body = request.get_json(silent=True) or {}
    try:
        res = pessoas.criar_pessoa(tipo, body)
        return jsonify({"ok": True, **res}), 201
    except AppError as e:
        return jsonify({"ok": False, "error": e.message, "code": e.code}), e.status
    except Exception as e:
        return _falha(tipo, "criar", e)


@admin_pessoas_bp.route(_SEG + "/<pessoa_id>", methods=["PATCH", "PUT"])
@admin_required
def atualizar(segmento, pessoa_id):
    tipo = _TIPOS[segmento]
    body = request.get_json(silent=True) or {}
    try:
        res = pessoas.atualizar_pessoa(tipo, pessoa_id, body)
        return jsonify({"ok": True, **res}), 200
    except AppError as e:
        return jsonify({"ok": False, "error": e.message, "code": e.code}), e.status
    except Exception as e:
        return _falha(tipo, "atualizar", e)


@admin_pessoas_bp.route(_SEG + "/<pessoa_id>", methods=["DELETE"])
@admin_required
def excluir(segmento, pessoa_id):
    tipo = _TIPOS[segmento]
    try:
        res = pessoas.excluir_pessoa(tipo, pessoa_id)
        return jsonify({"ok": True, **res}), 200
    except AppError as e:
        return jsonify({"ok": False, "error": e.message, "code": e.code}), e.status
    except Exception as e:
        return _falha(tipo, "excluir", e)


@admin_pessoas_bp.route("/responsaveis/sync-auth", methods=["POST"])
@admin_required
def sync_auth():
    body = request.get_json(silent=True) or {}
    acao = (body.get("action") or "").strip()
    try:
        res = pessoas.sincronizar_auth(
            acao,
            body.get("email"),
            email_antigo=body.get("oldEmail"),
            nome=body.get("nome"),
        )
        return jsonify({"ok": True, **res}), 200
    except AppError as e:
        return jsonify({"ok": False, "error": e.message, "code": e.code}), e.status
    except Exception:
        log.exception("[admin_pessoas] falha no sync-auth action=%s", acao)
        return jsonify({"ok": False, "error": "Erro ao sincronizar login."}), 500
