# -*- coding: utf-8 -*-
"""
exceptions.py — Erros da agenda de cirurgias.

- ValidationError: regra local violada (nada é enviado ao banco).
- StoreError: falha de leitura/escrita no banco remoto (mensagem do servidor).
- SessionError: falha ao carregar a sessão (perfil ausente, leitura inicial).
"""


class AgendaError(Exception):
    """Base de todos os erros do app."""


class ValidationError(AgendaError, ValueError):
    pass


class StoreError(AgendaError, RuntimeError):
    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status


class SessionError(AgendaError):
    pass
