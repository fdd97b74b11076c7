# services/normalize.py
# Normalizações usadas nas chaves de unicidade (CPF, e-mail, nomes).
import re
import unicodedata

_NAO_DIGITO = re.compile(r"\D+")


def normalize_cpf(cpf) -> str:
    """Só dígitos."""
    return _NAO_DIGITO.sub("", str(cpf or ""))


def normalize_email(email) -> str:
    return str(email or "").strip().lower()


def normalize_cep(cep) -> str:
    return _NAO_DIGITO.sub("", str(cep or ""))


def name_lower(nome) -> str:
    """Chave de índice por nome: minúsculo, sem acento, espaços colapsados, sem '/'."""
    s = unicodedata.normalize("NFKD", str(nome or ""))
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = re.sub(r"\s+", " ", s).strip().lower()
    return s.replace("/", "-")
