# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    auth: Authentication endpoints (login, logout, refresh, password).
    instituicoes: Institution management and per-tenant configuration.
    users: User management endpoints (CRUD, activate, guardians).
    academic_years: Academic years with trimesters and semesters.
    curriculum: Cursos, classes and disciplinas.
    turmas: Class management endpoints.
    matriculas: Annual and class enrollment endpoints.
    plano_ensino: Teaching plans, planned lessons and workflow.
    aulas_lancadas: Posted lesson endpoints.
    presencas: Attendance endpoints.
    avaliacoes: Assessment and grade endpoints.
    periodos_lancamento: Grade posting window endpoints.
    calculo_notas: Grade average calculation endpoints.
    encerramentos: Academic period closing endpoints.
    financeiro: Tuition and payment endpoints.
    biblioteca: Library endpoints.
    rh: Human resources endpoints.
    auditoria: Audit log endpoints.
    relatorios: Official report endpoints (boletim, pauta).
"""

from fastapi import APIRouter

from dsicola.api.v1 import (
    academic_years,
    auditoria,
    auth,
    aulas_lancadas,
    avaliacoes,
    biblioteca,
    calculo_notas,
    curriculum,
    encerramentos,
    financeiro,
    instituicoes,
    matriculas,
    periodos_lancamento,
    plano_ensino,
    presencas,
    relatorios,
    rh,
    turmas,
    users,
)

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(instituicoes.router, prefix="/instituicoes", tags=["Instituições"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(academic_years.router, prefix="/anos-letivos", tags=["Anos Letivos"])
router.include_router(curriculum.router, tags=["Curriculum"])
router.include_router(turmas.router, prefix="/turmas", tags=["Turmas"])
router.include_router(matriculas.router, tags=["Matrículas"])
router.include_router(plano_ensino.router, tags=["Plano de Ensino"])
router.include_router(aulas_lancadas.router, prefix="/aulas-lancadas", tags=["Aulas Lançadas"])
router.include_router(presencas.router, prefix="/presencas", tags=["Presenças"])
router.include_router(avaliacoes.router, tags=["Avaliações e Notas"])
router.include_router(
    periodos_lancamento.router, prefix="/periodos-lancamento", tags=["Períodos de Lançamento"]
)
router.include_router(calculo_notas.router, prefix="/calculo-notas", tags=["Cálculo de Notas"])
router.include_router(encerramentos.router, prefix="/encerramentos", tags=["Encerramentos"])
router.include_router(financeiro.router, tags=["Financeiro"])
router.include_router(biblioteca.router, prefix="/biblioteca", tags=["Biblioteca"])
router.include_router(rh.router, prefix="/rh", tags=["Recursos Humanos"])
router.include_router(auditoria.router, prefix="/auditoria", tags=["Auditoria"])
router.include_router(relatorios.router, prefix="/relatorios-oficiais", tags=["Relatórios"])

__all__ = ["router"]
