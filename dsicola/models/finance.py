# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tuition billing API models."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from dsicola.core.enums import MetodoPagamento, StatusMensalidade
from dsicola.models.common import ORMModel


class MensalidadeCreateRequest(BaseModel):
    """Request to create a mensalidade for a student."""

    aluno_id: str
    curso_id: str | None = None
    mes_referencia: int = Field(..., ge=1, le=12)
    ano_referencia: int = Field(..., ge=2000, le=2100)
    valor: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    desconto: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    data_vencimento: date
    observacoes: str | None = None


class MensalidadeUpdateRequest(BaseModel):
    valor: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    desconto: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    data_vencimento: date | None = None
    status: StatusMensalidade | None = None
    observacoes: str | None = None


class MensalidadeResponse(ORMModel):
    id: str
    aluno_id: str
    curso_id: str | None
    mes_referencia: int
    ano_referencia: int
    valor: Decimal
    desconto: Decimal
    multa: Decimal
    juros: Decimal
    valor_total: Decimal
    valor_pago: Decimal = Decimal("0")
    valor_restante: Decimal = Decimal("0")
    data_vencimento: date
    data_pagamento: date | None
    status: str
    forma_pagamento: str | None
    observacoes: str | None
    created_at: datetime


class MensalidadeListResponse(BaseModel):
    items: list[MensalidadeResponse]
    total: int
    page: int
    page_size: int


class GerarMensalidadesRequest(BaseModel):
    """Bulk generation for every student with an active annual enrollment."""

    mes_referencia: int = Field(..., ge=1, le=12)
    ano_referencia: int = Field(..., ge=2000, le=2100)
    valor: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    dia_vencimento: int = Field(default=10, ge=1, le=31)
    curso_id: str | None = None


class GerarMensalidadesResponse(BaseModel):
    criadas: int
    ignoradas: int


class AplicarMultasResponse(BaseModel):
    atualizadas: int


class PagamentoCreateRequest(BaseModel):
    """Payment of a mensalidade. The amount is checked against what is owed."""

    valor: Decimal
    metodo: MetodoPagamento
    data_pagamento: date | None = None
    referencia: str | None = Field(default=None, max_length=100)
    observacoes: str | None = None


class EstornoRequest(BaseModel):
    observacoes: str | None = None


class PagamentoResponse(ORMModel):
    id: str
    mensalidade_id: str
    valor: Decimal
    metodo: str
    data_pagamento: date
    numero_recibo: str | None
    referencia: str | None
    observacoes: str | None
    registrado_por: str | None
    estornado: bool
    estorno_de_id: str | None
    created_at: datetime


class PagamentoResultResponse(BaseModel):
    pagamento: PagamentoResponse
    mensalidade: MensalidadeResponse
