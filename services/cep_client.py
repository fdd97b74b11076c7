import os
import logging
import requests

from services.normalize import normalize_cep

log = logging.getLogger(__name__)

_URL_PADRAO = "https://viacep.com.br/ws/{cep}/json/"


def fetch_cep_info(cep):
    """Busca endereço de um CEP na ViaCEP e normaliza.

    Retorna dict:
      {
        "cep",        # 8 dígitos
        "endereco",   # logradouro
        "bairro",
        "cidade",
        "uf",
      }
    ou None em erro/timeout/CEP inexistente.
    """
    digits = normalize_cep(cep)
    if len(digits) != 8:
        return None

    url = (os.getenv("CEP_API_URL") or _URL_PADRAO).format(cep=digits)
    try:
        r = requests.get(url, timeout=(3, 5))
        if r.status_code != 200:
            return None
        data = r.json()
    except (requests.RequestException, ValueError) as e:
        log.warning("[cep_client] falha ao consultar %s: %s", digits, e)
        return None

    if not isinstance(data, dict) or data.get("erro"):
        return None

    def pick(*keys):
        for k in keys:
            v = data.get(k)
            if isinstance(v, str) and v.strip():
                return v.strip()
        return ""

    return {
        "cep": digits,
        "endereco": pick("logradouro"),
        "bairro": pick("bairro"),
        "cidade": pick("localidade"),
        "uf": pick("uf"),
    }
