# domain/erros.py
# Erros de negócio compartilhados por services/ e routes/.
# Cada erro carrega o status HTTP e a mensagem que vai para o usuário.

MENSAGENS_CONFLITO = {
    "NOME_TAKEN": "Já existe um cadastro com este nome.",
    "EMAIL_TAKEN": "Já existe um cadastro com este e-mail.",
    "CPF_TAKEN": "Já existe um cadastro com este CPF.",
    "AUTH_EMAIL_TAKEN": "Já existe um usuário de login com este e-mail.",
    "INDEX_MISMATCH": "Índice de unicidade pertence a outro cadastro.",
    "OLD_INDEX_NOT_FOUND": "Índice de unicidade anterior não encontrado.",
    "NOT_FOUND": "Registro não encontrado.",
}


class AppError(Exception):
    status = 400

    def __init__(self, message: str, code: str = ""):
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(AppError):
    status = 400


class NotFound(AppError):
    status = 404

    def __init__(self, message: str = "Registro não encontrado.", code: str = "NOT_FOUND"):
        super().__init__(message, code)


class UniqueConflict(AppError):
    """Violação de unicidade detectada dentro da transação (sentinela em `code`)."""
    status = 400

    def __init__(self, code: str, message: str = ""):
        super().__init__(message or MENSAGENS_CONFLITO.get(code, "Cadastro duplicado."), code)
