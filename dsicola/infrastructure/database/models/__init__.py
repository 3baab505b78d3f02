# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models.

Importing this package registers every table on ``Base.metadata``.
"""

from dsicola.infrastructure.database.models.academic import (
    AnoLetivo,
    Classe,
    Curso,
    Disciplina,
    Semestre,
    Trimestre,
    Turma,
)
from dsicola.infrastructure.database.models.assessment import (
    Avaliacao,
    Nota,
    NotaHistorico,
    PeriodoLancamentoNotas,
)
from dsicola.infrastructure.database.models.audit import LogAuditoria
from dsicola.infrastructure.database.models.base import (
    Base,
    TenantMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from dsicola.infrastructure.database.models.closing import EncerramentoAcademico
from dsicola.infrastructure.database.models.enrollment import Matricula, MatriculaAnual
from dsicola.infrastructure.database.models.finance import Mensalidade, Pagamento
from dsicola.infrastructure.database.models.hr import Funcionario, HistoricoRh
from dsicola.infrastructure.database.models.instituicao import (
    ConfiguracaoMulta,
    Instituicao,
    ParametrosSistema,
)
from dsicola.infrastructure.database.models.library import BibliotecaItem, EmprestimoBiblioteca
from dsicola.infrastructure.database.models.teaching import (
    AulaLancada,
    PlanoAula,
    PlanoEnsino,
    Presenca,
    WorkflowLog,
)
from dsicola.infrastructure.database.models.user import (
    LoginAttempt,
    RefreshToken,
    ResponsavelAluno,
    User,
    UserRoleAssignment,
)

__all__ = [
    # Base
    "Base",
    "UUIDPrimaryKeyMixin",
    "TimestampMixin",
    "TenantMixin",
    # Tenancy
    "Instituicao",
    "ParametrosSistema",
    "ConfiguracaoMulta",
    # Users
    "User",
    "UserRoleAssignment",
    "LoginAttempt",
    "RefreshToken",
    "ResponsavelAluno",
    # Academic structure
    "AnoLetivo",
    "Trimestre",
    "Semestre",
    "Curso",
    "Classe",
    "Disciplina",
    "Turma",
    # Enrollment
    "MatriculaAnual",
    "Matricula",
    # Teaching
    "PlanoEnsino",
    "PlanoAula",
    "AulaLancada",
    "Presenca",
    "WorkflowLog",
    # Assessment
    "Avaliacao",
    "Nota",
    "NotaHistorico",
    "PeriodoLancamentoNotas",
    # Closing
    "EncerramentoAcademico",
    # Finance
    "Mensalidade",
    "Pagamento",
    # Library
    "BibliotecaItem",
    "EmprestimoBiblioteca",
    # HR
    "Funcionario",
    "HistoricoRh",
    # Audit
    "LogAuditoria",
]
