# domain/cobranca.py
# Cobrança prevista de uma aula a partir da tabela tiposCobranca.
#   - mensal: sempre valor fixo do tipo escolhido
#   - hora_aula: fixo (tipo escolhido) ou automático (faixa por qtd de alunos)

from __future__ import annotations
from typing import Optional, Dict, Any, List
import re

from domain.erros import ValidationError

CATEGORIAS = ("mensal", "hora_aula")
MODOS = ("fixo", "automatico")

_NUM_RE = re.compile(r"\d+")


def normalizar_categoria(valor: Any) -> str:
    v = str(valor or "").strip().lower()
    if v in ("mensal", "mensalidade"):
        return "mensal"
    if v in ("aula", "hora_aula", "hora/aula", "hora"):
        return "hora_aula"
    return ""


def inferir_nome_base(nome: Any) -> str:
    """'Aula em grupo (3 alunos)' -> 'Aula em grupo'"""
    return str(nome or "").split("(", 1)[0].strip()


def qtd_alunos_tipo(tipo: Dict[str, Any]) -> int:
    """qtdAlunos numérico vale como está (inclusive 0); senão, primeiro número do nome."""
    q = tipo.get("qtdAlunos")
    if isinstance(q, (int, float)) and not isinstance(q, bool):
        return int(q)
    m = _NUM_RE.search(str(tipo.get("nome") or ""))
    return int(m.group(0)) if m else 1


def _valor(tipo: Dict[str, Any]) -> float:
    try:
        return float(tipo.get("valor") or 0)
    except (TypeError, ValueError):
        return 0.0


def _nome_base_tipo(tipo: Dict[str, Any]) -> str:
    return (tipo.get("nomeBase") or inferir_nome_base(tipo.get("nome"))).strip()


def tabelas_base(tipos: List[Dict[str, Any]], categoria: str = "hora_aula") -> List[str]:
    nomes = {
        _nome_base_tipo(t) for t in tipos or []
        if t.get("ativo") is not False and normalizar_categoria(t.get("categoria")) == categoria
    }
    return sorted(n for n in nomes if n)


def escolher_automatico(tipos: List[Dict[str, Any]], nome_base: str, qtd_alunos: int,
                        categoria: str = "hora_aula") -> Optional[Dict[str, Any]]:
    """
    Maior faixa com qtdAlunos <= alunos (limitado a [1, maior faixa]).
    Sem faixa abaixo do alvo fica a menor. None só se a tabela não tem tipos.
    """
    candidatos = [
        t for t in tipos or []
        if t.get("ativo") is not False
        and normalizar_categoria(t.get("categoria")) == categoria
        and _nome_base_tipo(t) == (nome_base or "").strip()
    ]
    if not candidatos:
        return None
    candidatos.sort(key=qtd_alunos_tipo)
    maior = qtd_alunos_tipo(candidatos[-1]) or 1
    alvo = max(1, min(qtd_alunos or 1, maior))
    escolhido = candidatos[0]
    for t in candidatos:
        if qtd_alunos_tipo(t) <= alvo:
            escolhido = t
    return escolhido


def montar_cobranca(form: Dict[str, Any], tipos: List[Dict[str, Any]], qtd_alunos: int) -> Dict[str, Any]:
    """Campos de cobrança gravados na aula; ValidationError se incompleto."""
    categoria = normalizar_categoria(form.get("cobrancaCategoria")) or "hora_aula"
    modo = form.get("cobrancaModo") if form.get("cobrancaModo") in MODOS else "fixo"
    if categoria == "mensal":
        modo = "fixo"

    tabela = (form.get("cobrancaTabelaBase") or "").strip()
    if modo == "automatico":
        if not tabela:
            raise ValidationError("Selecione a tabela base para cobrança automática.")
        tipo = escolher_automatico(tipos, tabela, qtd_alunos, categoria)
        if not tipo:
            raise ValidationError("Nenhum valor encontrado na tabela para essa quantidade de alunos.")
    else:
        tipo_id = form.get("tipoId")
        tipo = next((t for t in tipos or [] if t.get("id") == tipo_id), None) if tipo_id else None
        if not tipo:
            raise ValidationError("Selecione o tipo de cobrança.")
        tabela = ""

    return {
        "cobrancaCategoria": categoria,
        "cobrancaModo": modo,
        "cobrancaTabelaBase": tabela,
        "tipoId": tipo.get("id"),
        "tipoNome": tipo.get("nome") or "",
        "tipoCobranca": tipo.get("nome") or "",
        "valorPrevisto": _valor(tipo),
    }
