# services/unique_index.py
# Índices de unicidade como documentos-irmãos: {colecao}/{chave} -> {ownerId}.
# Sempre usados dentro de dbsvc.run_transaction: primeiro as leituras
# (checar_*), depois as escritas (gravar/liberar). Conflito levanta
# UniqueConflict e aborta a transação inteira.

from __future__ import annotations
from typing import Optional

from services import db as dbsvc
from domain.erros import UniqueConflict

IDX_CPF = "unique_cpf"
IDX_EMAIL_RESPONSAVEL = "unique_email"
IDX_EMAIL_GLOBAL = "unique_email_global"
IDX_LOCAIS = "index_locais"
IDX_MODALIDADES = "index_modalidades"
IDX_TIPOS_COBRANCA = "index_tiposCobranca"


def ref(colecao: str, chave: str):
    return dbsvc.collection(colecao).document(chave)


def checar_livre(tx, colecao: str, chave: str, dono_id: Optional[str] = None,
                 codigo: str = "NOME_TAKEN"):
    """Chave livre (ou já do próprio dono). Devolve a ref para gravar depois."""
    r = ref(colecao, chave)
    snap = r.get(transaction=tx)
    if snap.exists:
        atual = (snap.to_dict() or {}).get("ownerId")
        if not dono_id or atual != dono_id:
            raise UniqueConflict(codigo)
    return r


def checar_dono(tx, colecao: str, chave: str, dono_id: str, estrito: bool = True):
    """
    Índice atual precisa pertencer ao dono. Com estrito=False um índice
    ausente é tolerado (cadastros antigos sem índice); devolve a ref ou None.
    """
    r = ref(colecao, chave)
    snap = r.get(transaction=tx)
    if not snap.exists:
        if estrito:
            raise UniqueConflict("OLD_INDEX_NOT_FOUND")
        return None
    if (snap.to_dict() or {}).get("ownerId") != dono_id:
        raise UniqueConflict("INDEX_MISMATCH")
    return r


def gravar(tx, r, dono_id: str, colecao_dono: str):
    tx.set(r, {"ownerId": dono_id, "colecao": colecao_dono, "atualizadoEm": dbsvc.now_ts()})


def liberar(tx, r):
    if r is not None:
        tx.delete(r)
