# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain enumerations shared by ORM models, DTOs and services.

Values are stored as plain strings in the database. The enum member
values match the persisted strings exactly.
"""

from enum import Enum


class UserRole(str, Enum):
    """Roles a user can hold within an institution."""

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    DIRECAO = "DIRECAO"
    SECRETARIA = "SECRETARIA"
    PROFESSOR = "PROFESSOR"
    ALUNO = "ALUNO"
    RESPONSAVEL = "RESPONSAVEL"
    FINANCEIRO = "FINANCEIRO"
    POS = "POS"


class TipoAcademico(str, Enum):
    """Education level served by an institution."""

    SECUNDARIO = "SECUNDARIO"
    SUPERIOR = "SUPERIOR"


class StatusInstituicao(str, Enum):
    ATIVA = "ativa"
    SUSPENSA = "suspensa"
    INATIVA = "inativa"


class StatusAnoLetivo(str, Enum):
    """Lifecycle of an academic year and of its periods."""

    PLANEJADO = "PLANEJADO"
    ATIVO = "ATIVO"
    ENCERRADO = "ENCERRADO"


class StatusMatriculaAnual(str, Enum):
    ATIVA = "ATIVA"
    TRANCADA = "TRANCADA"
    CONCLUIDA = "CONCLUIDA"
    CANCELADA = "CANCELADA"


class StatusMatricula(str, Enum):
    ATIVA = "Ativa"
    TRANCADA = "Trancada"
    CONCLUIDA = "Concluida"
    CANCELADA = "Cancelada"


class StatusWorkflow(str, Enum):
    """Approval workflow status for planos de ensino and avaliações."""

    RASCUNHO = "RASCUNHO"
    SUBMETIDO = "SUBMETIDO"
    APROVADO = "APROVADO"
    REJEITADO = "REJEITADO"
    BLOQUEADO = "BLOQUEADO"


class EstadoPlano(str, Enum):
    """Operational state of a plano de ensino derived from its workflow."""

    RASCUNHO = "RASCUNHO"
    EM_REVISAO = "EM_REVISAO"
    APROVADO = "APROVADO"
    ENCERRADO = "ENCERRADO"


class EntidadeWorkflow(str, Enum):
    PLANO_ENSINO = "PLANO_ENSINO"
    AVALIACAO = "AVALIACAO"


class StatusPresenca(str, Enum):
    PRESENTE = "PRESENTE"
    AUSENTE = "AUSENTE"
    JUSTIFICADO = "JUSTIFICADO"


class OrigemPresenca(str, Enum):
    MANUAL = "MANUAL"
    BIOMETRIA = "BIOMETRIA"


class SituacaoFrequencia(str, Enum):
    REGULAR = "REGULAR"
    IRREGULAR = "IRREGULAR"


class TipoAvaliacao(str, Enum):
    PROVA = "PROVA"
    TESTE = "TESTE"
    TRABALHO = "TRABALHO"
    PROVA_PRATICA = "PROVA_PRATICA"
    SEMINARIO = "SEMINARIO"
    PROJETO = "PROJETO"
    RELATORIO = "RELATORIO"
    EXAME = "EXAME"
    RECUPERACAO = "RECUPERACAO"
    PROVA_FINAL = "PROVA_FINAL"


class TipoPeriodoLancamento(str, Enum):
    SEMESTRE = "SEMESTRE"
    TRIMESTRE = "TRIMESTRE"


class StatusPeriodoLancamento(str, Enum):
    ABERTO = "ABERTO"
    FECHADO = "FECHADO"
    EXPIRADO = "EXPIRADO"


class StatusNota(str, Enum):
    """Outcome of a grade calculation."""

    APROVADO = "APROVADO"
    REPROVADO = "REPROVADO"
    EXAME_RECURSO = "EXAME_RECURSO"


class SituacaoFinal(str, Enum):
    """Final outcome combining grades and attendance."""

    APROVADO = "APROVADO"
    REPROVADO = "REPROVADO"
    REPROVADO_FALTA = "REPROVADO_FALTA"
    EM_CURSO = "EM_CURSO"


class PeriodoEncerramento(str, Enum):
    TRIMESTRE_1 = "TRIMESTRE_1"
    TRIMESTRE_2 = "TRIMESTRE_2"
    TRIMESTRE_3 = "TRIMESTRE_3"
    SEMESTRE_1 = "SEMESTRE_1"
    SEMESTRE_2 = "SEMESTRE_2"
    ANO = "ANO"

    @property
    def is_trimestre(self) -> bool:
        return self.value.startswith("TRIMESTRE_")

    @property
    def is_semestre(self) -> bool:
        return self.value.startswith("SEMESTRE_")

    @property
    def numero(self) -> int | None:
        """Period number for trimesters and semesters, None for ANO."""
        if self is PeriodoEncerramento.ANO:
            return None
        return int(self.value.rsplit("_", 1)[1])

    @classmethod
    def for_period(cls, tipo: TipoAcademico, numero: int) -> "PeriodoEncerramento":
        """Map an institution type and period number to its closing key."""
        prefix = "TRIMESTRE" if tipo == TipoAcademico.SECUNDARIO else "SEMESTRE"
        return cls(f"{prefix}_{numero}")


class StatusEncerramento(str, Enum):
    ABERTO = "ABERTO"
    EM_ENCERRAMENTO = "EM_ENCERRAMENTO"
    ENCERRADO = "ENCERRADO"
    REABERTO = "REABERTO"


class StatusMensalidade(str, Enum):
    PENDENTE = "Pendente"
    PAGO = "Pago"
    PARCIAL = "Parcial"
    ATRASADO = "Atrasado"
    CANCELADO = "Cancelado"


class MetodoPagamento(str, Enum):
    TRANSFERENCIA = "TRANSFERENCIA"
    MULTICAIXA = "MULTICAIXA"
    DINHEIRO = "DINHEIRO"
    CHEQUE = "CHEQUE"
    DEPOSITO = "DEPOSITO"
    REFERENCIA = "REFERENCIA"


class TipoItemBiblioteca(str, Enum):
    FISICO = "FISICO"
    DIGITAL = "DIGITAL"


class StatusEmprestimo(str, Enum):
    ATIVO = "ATIVO"
    DEVOLVIDO = "DEVOLVIDO"
    ATRASADO = "ATRASADO"


class StatusFuncionario(str, Enum):
    ATIVO = "ATIVO"
    SUSPENSO = "SUSPENSO"
    DEMITIDO = "DEMITIDO"


class TipoAlteracaoRh(str, Enum):
    ADMISSAO = "ADMISSAO"
    PROMOCAO = "PROMOCAO"
    ALTERACAO_SALARIAL = "ALTERACAO_SALARIAL"
    TRANSFERENCIA = "TRANSFERENCIA"
    SUSPENSAO = "SUSPENSAO"
    DEMISSAO = "DEMISSAO"
    OUTRO = "OUTRO"


class ModuloAuditoria(str, Enum):
    SEGURANCA = "SEGURANCA"
    ACADEMICO = "ACADEMICO"
    ANO_LETIVO = "ANO_LETIVO"
    PLANO_ENSINO = "PLANO_ENSINO"
    PRESENCAS = "PRESENCAS"
    AVALIACOES_NOTAS = "AVALIACOES_NOTAS"
    ENCERRAMENTO = "ENCERRAMENTO"
    FINANCEIRO = "FINANCEIRO"
    BIBLIOTECA = "BIBLIOTECA"
    RH = "RH"
    USUARIOS = "USUARIOS"
    CONFIGURACAO = "CONFIGURACAO"


class AcaoAuditoria(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    BLOCK = "BLOCK"
    CLOSE = "CLOSE"
    REOPEN = "REOPEN"
    ESTORNAR = "ESTORNAR"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGIN_BLOCKED = "LOGIN_BLOCKED"
    PASSWORD_RESET = "PASSWORD_RESET"


STAFF_ROLES = frozenset(
    {
        UserRole.SUPER_ADMIN,
        UserRole.ADMIN,
        UserRole.DIRECAO,
        UserRole.SECRETARIA,
        UserRole.PROFESSOR,
        UserRole.FINANCEIRO,
    }
)
