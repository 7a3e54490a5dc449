"""Errors raised by the mitigation optimizer."""

from dataclasses import dataclass
from typing import Any


@dataclass
class MitigationError(Exception):
    """
    Base error for invalid optimizer input.

    Attributes:
        mensagem: Human-readable description.
        contexto: Name of the offending argument (dados, configuracao, impactoBase).
    """
    mensagem: str
    contexto: str = ''

    def __post_init__(self):
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.contexto:
            return f"{self.contexto}: {self.mensagem}"
        return self.mensagem

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "mensagem": self.mensagem,
            "contexto": self.contexto,
        }


@dataclass
class StructuralError(MitigationError):
    """Input is missing, nested instead of flat, or out of range."""


@dataclass
class NoStrategySelectedError(MitigationError):
    """No mitigation strategy has its activation flag set."""
