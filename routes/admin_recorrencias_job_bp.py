# routes/admin_recorrencias_job_bp.py
# Admin job: mantém 5 semanas de aulas recorrentes à frente (semanal)
# Rota: POST /admin/jobs/recorrencias
#
# Regras:
# - Disparado pelo agendador (domingo 21:00 America/Sao_Paulo) com X-Job-Token,
#   ou manualmente por um admin (Bearer).
# - RECORRENCIA_JOB_MODE != "on" -> 409 (job desligado).
# - body opcional: {"hoje": "YYYY-MM-DD", "minimo": 5}
#
from __future__ import annotations

import os
import hmac
import logging
from flask import Blueprint, request, jsonify

from services.auth import get_uid_from_bearer, is_admin_uid
from services import aulas_repo
from domain.calendario import parse_data
from domain.recorrencia import SEMANAS_INICIAIS

logger = logging.getLogger("nexquadra.recorrencias_job")

admin_recorrencias_job_bp = Blueprint("admin_recorrencias_job_bp", __name__)


def _autorizado(req) -> tuple[bool, str | None]:
    token = (os.environ.get("RECORRENCIA_JOB_TOKEN") or "").strip()
    enviado = (req.headers.get("X-Job-Token") or "").strip()
    if token and enviado and hmac.compare_digest(token, enviado):
        return True, "scheduler"
    uid = get_uid_from_bearer(req)
    return is_admin_uid(uid), uid


@admin_recorrencias_job_bp.route("/admin/jobs/recorrencias", methods=["POST", "OPTIONS"])
def admin_jobs_recorrencias():
    if request.method == "OPTIONS":
        return ("", 204)

    ok, quem = _autorizado(request)
    if not ok:
        # 401 se sem credencial, 403 se token válido mas não admin
        return jsonify({"ok": False, "error": "forbidden"}), (401 if quem is None else 403)

    mode = (os.environ.get("RECORRENCIA_JOB_MODE") or "off").strip().lower()
    if mode != "on":
        return jsonify({"ok": False, "error": "recorrencia_job_off"}), 409

    body = request.get_json(silent=True) or {}
    try:
        hoje = parse_data(body["hoje"]) if body.get("hoje") else None
        minimo = int(body.get("minimo") or SEMANAS_INICIAIS)
    except (TypeError, ValueError):
        return jsonify({"ok": False, "error": "Parâmetros inválidos."}), 400

    try:
        stats = aulas_repo.manter_janela_recorrencias(hoje, minimo)
    except Exception:
        logger.exception("[recorrencias_job] falha")
        return jsonify({"ok": False, "error": "Erro ao gerar aulas recorrentes."}), 500

    logger.info("[recorrencias_job] ok por=%s stats=%s", quem, stats)
    return jsonify({"ok": True, **stats}), 200
