# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial DSICOLA schema.

Every tenant-owned table carries ``instituicao_id`` referencing
``instituicoes``; rows are isolated by that column.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-03-01
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID = postgresql.UUID(as_uuid=False)


def _id() -> sa.Column:
    return sa.Column("id", UUID, server_default=sa.text("gen_random_uuid()"), primary_key=True)


def _tenant() -> sa.Column:
    return sa.Column(
        "instituicao_id",
        UUID,
        sa.ForeignKey("instituicoes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def _fk(name: str, target: str, ondelete: str, nullable: bool = False, index: bool = False) -> sa.Column:
    return sa.Column(
        name,
        UUID,
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
        index=index,
    )


def upgrade() -> None:
    """Create all tables."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # =========================================================================
    # TENANCY
    # =========================================================================

    op.create_table(
        "instituicoes",
        _id(),
        sa.Column("nome", sa.String(200), nullable=False),
        sa.Column("subdominio", sa.String(63), nullable=False, unique=True),
        sa.Column("tipo_academico", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="ativa"),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("telefone", sa.String(50), nullable=True),
        sa.Column("endereco", sa.String(500), nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "parametros_sistema",
        _id(),
        sa.Column(
            "instituicao_id",
            UUID,
            sa.ForeignKey("instituicoes.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column(
            "percentual_minimo_aprovacao", sa.Numeric(5, 2), nullable=False, server_default="10.00"
        ),
        sa.Column("permitir_exame_recurso", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("frequencia_minima", sa.Numeric(5, 2), nullable=False, server_default="75.00"),
        sa.Column("quantidade_semestres_por_ano", sa.Integer, nullable=False, server_default="2"),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "configuracoes_multa",
        _id(),
        sa.Column(
            "instituicao_id",
            UUID,
            sa.ForeignKey("instituicoes.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("multa_percentual", sa.Numeric(5, 2), nullable=False),
        sa.Column("juros_dia_percentual", sa.Numeric(6, 3), nullable=False),
        sa.Column("dias_tolerancia", sa.Integer, nullable=False, server_default="5"),
        _created_at(),
        _updated_at(),
    )

    # =========================================================================
    # USERS AND AUTHENTICATION
    # =========================================================================

    op.create_table(
        "users",
        _id(),
        _fk("instituicao_id", "instituicoes.id", "CASCADE", nullable=True, index=True),
        sa.Column("email", sa.String(255), nullable=False, index=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("nome_completo", sa.String(200), nullable=False),
        sa.Column("telefone", sa.String(50), nullable=True),
        sa.Column("numero_identificacao", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("must_change_password", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("password_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("instituicao_id", "email", name="uq_users_instituicao_email"),
    )

    op.create_table(
        "user_roles",
        _id(),
        _fk("user_id", "users.id", "CASCADE", index=True),
        sa.Column("role", sa.String(30), nullable=False),
        sa.UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )

    op.create_table(
        "login_attempts",
        sa.Column("email", sa.String(255), primary_key=True),
        sa.Column("attempt_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "last_attempt_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("locked_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ip_origem", sa.String(64), nullable=True),
    )

    op.create_table(
        "refresh_tokens",
        _id(),
        _fk("user_id", "users.id", "CASCADE", index=True),
        sa.Column("token_hash", sa.String(64), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )

    op.create_table(
        "responsaveis_alunos",
        _id(),
        _tenant(),
        _fk("responsavel_id", "users.id", "CASCADE"),
        _fk("aluno_id", "users.id", "CASCADE"),
        sa.Column("parentesco", sa.String(50), nullable=True),
        _created_at(),
        sa.UniqueConstraint("responsavel_id", "aluno_id", name="uq_responsavel_aluno"),
    )

    # =========================================================================
    # ACADEMIC STRUCTURE
    # =========================================================================

    op.create_table(
        "anos_letivos",
        _id(),
        _tenant(),
        sa.Column("ano", sa.Integer, nullable=False),
        sa.Column("data_inicio", sa.Date, nullable=False),
        sa.Column("data_fim", sa.Date, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PLANEJADO"),
        sa.Column("descricao", sa.Text, nullable=True),
        sa.Column("ativado_em", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ativado_por", UUID, nullable=True),
        sa.Column("encerrado_em", sa.DateTime(timezone=True), nullable=True),
        sa.Column("encerrado_por", UUID, nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("instituicao_id", "ano", name="uq_anos_letivos_ano"),
    )

    for table in ("trimestres", "semestres"):
        op.create_table(
            table,
            _id(),
            _tenant(),
            _fk("ano_letivo_id", "anos_letivos.id", "CASCADE", index=True),
            sa.Column("numero", sa.Integer, nullable=False),
            sa.Column("data_inicio", sa.Date, nullable=False),
            sa.Column("data_fim", sa.Date, nullable=False),
            sa.Column("status", sa.String(20), nullable=False, server_default="PLANEJADO"),
            _created_at(),
            _updated_at(),
            sa.UniqueConstraint("ano_letivo_id", "numero", name=f"uq_{table}_numero"),
        )

    op.create_table(
        "cursos",
        _id(),
        _tenant(),
        sa.Column("codigo", sa.String(30), nullable=False),
        sa.Column("nome", sa.String(200), nullable=False),
        sa.Column("descricao", sa.Text, nullable=True),
        sa.Column("duracao_anos", sa.Integer, nullable=True),
        sa.Column("valor_mensalidade", sa.Numeric(12, 2), nullable=True),
        sa.Column("valor_multa", sa.Numeric(5, 2), nullable=True),
        sa.Column("percentual_juros", sa.Numeric(6, 3), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("instituicao_id", "codigo", name="uq_cursos_codigo"),
    )

    op.create_table(
        "classes",
        _id(),
        _tenant(),
        sa.Column("codigo", sa.String(30), nullable=False),
        sa.Column("nome", sa.String(100), nullable=False),
        sa.Column("nivel", sa.Integer, nullable=True),
        sa.Column("valor_mensalidade", sa.Numeric(12, 2), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("instituicao_id", "codigo", name="uq_classes_codigo"),
    )

    op.create_table(
        "disciplinas",
        _id(),
        _tenant(),
        _fk("curso_id", "cursos.id", "SET NULL", nullable=True),
        sa.Column("codigo", sa.String(30), nullable=False),
        sa.Column("nome", sa.String(200), nullable=False),
        sa.Column("carga_horaria", sa.Integer, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("instituicao_id", "codigo", name="uq_disciplinas_codigo"),
    )

    op.create_table(
        "turmas",
        _id(),
        _tenant(),
        _fk("ano_letivo_id", "anos_letivos.id", "RESTRICT", index=True),
        _fk("curso_id", "cursos.id", "RESTRICT", nullable=True),
        _fk("classe_id", "classes.id", "RESTRICT", nullable=True),
        sa.Column("nome", sa.String(100), nullable=False),
        sa.Column("semestre", sa.Integer, nullable=True),
        sa.Column("turno", sa.String(20), nullable=True),
        sa.Column("sala", sa.String(50), nullable=True),
        sa.Column("capacidade", sa.Integer, nullable=False, server_default="30"),
        _created_at(),
        _updated_at(),
    )

    # =========================================================================
    # ENROLLMENT
    # =========================================================================

    op.create_table(
        "matriculas_anuais",
        _id(),
        _tenant(),
        _fk("aluno_id", "users.id", "CASCADE", index=True),
        _fk("ano_letivo_id", "anos_letivos.id", "RESTRICT", index=True),
        sa.Column("nivel_ensino", sa.String(20), nullable=False),
        _fk("curso_id", "cursos.id", "RESTRICT", nullable=True),
        _fk("classe_id", "classes.id", "RESTRICT", nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="ATIVA"),
        sa.Column("data_matricula", sa.Date, nullable=False, server_default=sa.text("CURRENT_DATE")),
        sa.Column("observacoes", sa.Text, nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "matriculas",
        _id(),
        _tenant(),
        _fk("aluno_id", "users.id", "CASCADE", index=True),
        _fk("turma_id", "turmas.id", "RESTRICT", index=True),
        _fk("ano_letivo_id", "anos_letivos.id", "RESTRICT"),
        _fk("matricula_anual_id", "matriculas_anuais.id", "RESTRICT"),
        sa.Column("status", sa.String(20), nullable=False, server_default="ATIVA"),
        sa.Column("data_matricula", sa.Date, nullable=False, server_default=sa.text("CURRENT_DATE")),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("aluno_id", "turma_id", name="uq_matriculas_aluno_turma"),
    )

    # =========================================================================
    # TEACHING
    # =========================================================================

    op.create_table(
        "planos_ensino",
        _id(),
        _tenant(),
        _fk("disciplina_id", "disciplinas.id", "RESTRICT"),
        _fk("professor_id", "users.id", "RESTRICT", index=True),
        _fk("turma_id", "turmas.id", "RESTRICT", index=True),
        _fk("ano_letivo_id", "anos_letivos.id", "RESTRICT", index=True),
        sa.Column("ementa", sa.Text, nullable=True),
        sa.Column("objetivos", sa.Text, nullable=True),
        sa.Column("metodologia", sa.Text, nullable=True),
        sa.Column("bibliografia", sa.Text, nullable=True),
        sa.Column("carga_horaria_total", sa.Integer, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="RASCUNHO"),
        sa.Column("estado", sa.String(20), nullable=False, server_default="RASCUNHO"),
        sa.Column("bloqueado", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("bloqueado_por", UUID, nullable=True),
        sa.Column("data_bloqueio", sa.DateTime(timezone=True), nullable=True),
        sa.Column("aprovado_por", UUID, nullable=True),
        sa.Column("data_aprovacao", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "planos_aula",
        _id(),
        _fk("plano_ensino_id", "planos_ensino.id", "CASCADE", index=True),
        sa.Column("ordem", sa.Integer, nullable=False),
        sa.Column("titulo", sa.String(200), nullable=False),
        sa.Column("descricao", sa.Text, nullable=True),
        sa.Column("periodo", sa.Integer, nullable=False),
        sa.Column("quantidade_aulas", sa.Integer, nullable=False, server_default="1"),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "aulas_lancadas",
        _id(),
        _tenant(),
        _fk("plano_ensino_id", "planos_ensino.id", "CASCADE", index=True),
        _fk("plano_aula_id", "planos_aula.id", "CASCADE"),
        sa.Column("data", sa.Date, nullable=False),
        sa.Column("periodo", sa.Integer, nullable=False),
        sa.Column("observacoes", sa.Text, nullable=True),
        sa.Column("lancado_por", UUID, nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("plano_aula_id", "data", name="uq_aulas_lancadas_data"),
    )

    op.create_table(
        "presencas",
        _id(),
        _tenant(),
        _fk("aula_lancada_id", "aulas_lancadas.id", "CASCADE", index=True),
        _fk("aluno_id", "users.id", "CASCADE", index=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("origem", sa.String(20), nullable=False, server_default="MANUAL"),
        sa.Column("observacoes", sa.Text, nullable=True),
        sa.Column("registrado_por", UUID, nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("aula_lancada_id", "aluno_id", name="uq_presencas_aula_aluno"),
    )

    op.create_table(
        "workflow_logs",
        _id(),
        _tenant(),
        sa.Column("entidade", sa.String(30), nullable=False),
        sa.Column("entidade_id", UUID, nullable=False, index=True),
        sa.Column("status_anterior", sa.String(20), nullable=False),
        sa.Column("status_novo", sa.String(20), nullable=False),
        sa.Column("usuario_id", UUID, nullable=False),
        sa.Column("observacao", sa.Text, nullable=True),
        _created_at(),
    )

    # =========================================================================
    # ASSESSMENT
    # =========================================================================

    op.create_table(
        "avaliacoes",
        _id(),
        _tenant(),
        _fk("plano_ensino_id", "planos_ensino.id", "CASCADE", index=True),
        _fk("turma_id", "turmas.id", "RESTRICT"),
        sa.Column("tipo", sa.String(30), nullable=False),
        sa.Column("nome", sa.String(200), nullable=False),
        sa.Column("data", sa.Date, nullable=False),
        sa.Column("peso", sa.Numeric(5, 2), nullable=False, server_default="1"),
        sa.Column("trimestre", sa.Integer, nullable=True),
        sa.Column("semestre", sa.Integer, nullable=True),
        sa.Column("descricao", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="RASCUNHO"),
        sa.Column("fechada", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("fechada_por", UUID, nullable=True),
        sa.Column("fechada_em", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", UUID, nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "notas",
        _id(),
        _tenant(),
        _fk("avaliacao_id", "avaliacoes.id", "CASCADE", index=True),
        _fk("aluno_id", "users.id", "CASCADE", index=True),
        _fk("plano_ensino_id", "planos_ensino.id", "CASCADE", index=True),
        sa.Column("valor", sa.Numeric(5, 2), nullable=False),
        sa.Column("observacoes", sa.Text, nullable=True),
        sa.Column("lancado_por", UUID, nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("aluno_id", "avaliacao_id", name="uq_notas_aluno_avaliacao"),
    )

    op.create_table(
        "notas_historico",
        _id(),
        _fk("nota_id", "notas.id", "CASCADE", index=True),
        sa.Column("valor_anterior", sa.Numeric(5, 2), nullable=False),
        sa.Column("valor_novo", sa.Numeric(5, 2), nullable=False),
        sa.Column("motivo", sa.Text, nullable=True),
        sa.Column("alterado_por", UUID, nullable=True),
        _created_at(),
    )

    op.create_table(
        "periodos_lancamento_notas",
        _id(),
        _tenant(),
        _fk("ano_letivo_id", "anos_letivos.id", "CASCADE", index=True),
        sa.Column("tipo", sa.String(20), nullable=False),
        sa.Column("numero", sa.Integer, nullable=False),
        sa.Column("data_inicio", sa.Date, nullable=False),
        sa.Column("data_fim", sa.Date, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="ABERTO"),
        sa.Column("reaberto_por", UUID, nullable=True),
        sa.Column("motivo_reabertura", sa.Text, nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("ano_letivo_id", "tipo", "numero", name="uq_periodos_lancamento"),
    )

    op.create_table(
        "encerramentos_academicos",
        _id(),
        _tenant(),
        _fk("ano_letivo_id", "anos_letivos.id", "CASCADE", index=True),
        sa.Column("periodo", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="ABERTO"),
        sa.Column("iniciado_por", UUID, nullable=True),
        sa.Column("iniciado_em", sa.DateTime(timezone=True), nullable=True),
        sa.Column("encerrado_por", UUID, nullable=True),
        sa.Column("encerrado_em", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reaberto_por", UUID, nullable=True),
        sa.Column("reaberto_em", sa.DateTime(timezone=True), nullable=True),
        sa.Column("justificativa_reabertura", sa.Text, nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint(
            "instituicao_id", "ano_letivo_id", "periodo", name="uq_encerramentos_periodo"
        ),
    )

    # =========================================================================
    # FINANCE
    # =========================================================================

    op.create_table(
        "mensalidades",
        _id(),
        _tenant(),
        _fk("aluno_id", "users.id", "CASCADE", index=True),
        _fk("curso_id", "cursos.id", "SET NULL", nullable=True),
        sa.Column("mes_referencia", sa.Integer, nullable=False),
        sa.Column("ano_referencia", sa.Integer, nullable=False),
        sa.Column("valor", sa.Numeric(12, 2), nullable=False),
        sa.Column("desconto", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("multa", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("juros", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("data_vencimento", sa.Date, nullable=False, index=True),
        sa.Column("data_pagamento", sa.Date, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="Pendente", index=True),
        sa.Column("forma_pagamento", sa.String(30), nullable=True),
        sa.Column("observacoes", sa.Text, nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint(
            "aluno_id", "mes_referencia", "ano_referencia", name="uq_mensalidades_referencia"
        ),
    )

    op.create_table(
        "pagamentos",
        _id(),
        _tenant(),
        _fk("mensalidade_id", "mensalidades.id", "CASCADE", index=True),
        sa.Column("valor", sa.Numeric(12, 2), nullable=False),
        sa.Column("metodo", sa.String(40), nullable=False),
        sa.Column("data_pagamento", sa.Date, nullable=False),
        sa.Column("numero_recibo", sa.String(30), nullable=True),
        sa.Column("referencia", sa.String(100), nullable=True),
        sa.Column("observacoes", sa.Text, nullable=True),
        sa.Column("registrado_por", UUID, nullable=True),
        sa.Column("estornado", sa.Boolean, nullable=False, server_default="false"),
        _fk("estorno_de_id", "pagamentos.id", "SET NULL", nullable=True),
        _created_at(),
        sa.UniqueConstraint("instituicao_id", "numero_recibo", name="uq_pagamentos_recibo"),
    )

    # =========================================================================
    # LIBRARY
    # =========================================================================

    op.create_table(
        "biblioteca_itens",
        _id(),
        _tenant(),
        sa.Column("titulo", sa.String(300), nullable=False),
        sa.Column("autor", sa.String(200), nullable=True),
        sa.Column("isbn", sa.String(20), nullable=True),
        sa.Column("editora", sa.String(200), nullable=True),
        sa.Column("ano_publicacao", sa.Integer, nullable=True),
        sa.Column("categoria", sa.String(100), nullable=True),
        sa.Column("tipo", sa.String(20), nullable=False, server_default="FISICO"),
        sa.Column("quantidade", sa.Integer, nullable=False, server_default="1"),
        sa.Column("localizacao", sa.String(100), nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "emprestimos_biblioteca",
        _id(),
        _tenant(),
        _fk("item_id", "biblioteca_itens.id", "CASCADE", index=True),
        _fk("usuario_id", "users.id", "CASCADE", index=True),
        sa.Column("data_emprestimo", sa.Date, nullable=False),
        sa.Column("data_prevista_devolucao", sa.Date, nullable=False),
        sa.Column("data_devolucao", sa.Date, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="ATIVO"),
        sa.Column("observacoes", sa.Text, nullable=True),
        sa.Column("registrado_por", UUID, nullable=True),
        _created_at(),
        _updated_at(),
    )

    # =========================================================================
    # HUMAN RESOURCES
    # =========================================================================

    op.create_table(
        "funcionarios",
        _id(),
        _tenant(),
        _fk("user_id", "users.id", "SET NULL", nullable=True),
        sa.Column("nome_completo", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("numero_identificacao", sa.String(50), nullable=True),
        sa.Column("cargo", sa.String(100), nullable=False),
        sa.Column("departamento", sa.String(100), nullable=True),
        sa.Column("data_admissao", sa.Date, nullable=False),
        sa.Column("salario_base", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="ATIVO"),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "historico_rh",
        _id(),
        _tenant(),
        _fk("funcionario_id", "funcionarios.id", "CASCADE", index=True),
        sa.Column("tipo_alteracao", sa.String(30), nullable=False),
        sa.Column("valor_anterior", sa.Text, nullable=True),
        sa.Column("valor_novo", sa.Text, nullable=True),
        sa.Column("observacao", sa.Text, nullable=True),
        sa.Column("data_alteracao", sa.Date, nullable=False),
        sa.Column("registrado_por", UUID, nullable=True),
        _created_at(),
    )

    # =========================================================================
    # AUDIT
    # =========================================================================

    op.create_table(
        "logs_auditoria",
        _id(),
        _fk("instituicao_id", "instituicoes.id", "CASCADE", nullable=True, index=True),
        sa.Column("usuario_id", UUID, nullable=True, index=True),
        sa.Column("usuario_email", sa.String(255), nullable=True),
        sa.Column("modulo", sa.String(30), nullable=False, index=True),
        sa.Column("acao", sa.String(30), nullable=False),
        sa.Column("entidade", sa.String(50), nullable=False),
        sa.Column("entidade_id", sa.String(64), nullable=True),
        sa.Column("dados_anteriores", postgresql.JSONB, nullable=True),
        sa.Column("dados_novos", postgresql.JSONB, nullable=True),
        sa.Column("ip_origem", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("observacao", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
            index=True,
        ),
    )


def downgrade() -> None:
    """Drop all tables."""
    # Drop in reverse order to handle foreign keys
    op.drop_table("logs_auditoria")
    op.drop_table("historico_rh")
    op.drop_table("funcionarios")
    op.drop_table("emprestimos_biblioteca")
    op.drop_table("biblioteca_itens")
    op.drop_table("pagamentos")
    op.drop_table("mensalidades")
    op.drop_table("encerramentos_academicos")
    op.drop_table("periodos_lancamento_notas")
    op.drop_table("notas_historico")
    op.drop_table("notas")
    op.drop_table("avaliacoes")
    op.drop_table("workflow_logs")
    op.drop_table("presencas")
    op.drop_table("aulas_lancadas")
    op.drop_table("planos_aula")
    op.drop_table("planos_ensino")
    op.drop_table("matriculas")
    op.drop_table("matriculas_anuais")
    op.drop_table("turmas")
    op.drop_table("disciplinas")
    op.drop_table("classes")
    op.drop_table("cursos")
    op.drop_table("semestres")
    op.drop_table("trimestres")
    op.drop_table("anos_letivos")
    op.drop_table("responsaveis_alunos")
    op.drop_table("refresh_tokens")
    op.drop_table("login_attempts")
    op.drop_table("user_roles")
    op.drop_table("users")
    op.drop_table("configuracoes_multa")
    op.drop_table("parametros_sistema")
    op.drop_table("instituicoes")
