"""
Transformação das linhas do banco nos modelos de exibição.

Funções puras: não acessam o banco e, para as mesmas entradas (incluindo
`hoje`), devolvem sempre o mesmo resultado.
"""

from datetime import date
from typing import Iterable

from .constants import ALUNO_DESCONHECIDO, ALUNO_NAO_ENCONTRADO, SEM_TURMA
from .schemas import Aluno, AlunoRow, Observacao, ObservacaoRow, Relatorio, RelatorioRow, Turma, TurmaRow


def calcular_idade(data_nascimento: date, hoje: date = None) -> int:
    """Idade em anos completos: só conta o ano corrente depois do aniversário."""
    hoje = hoje or date.today()
    idade = hoje.year - data_nascimento.year
    if (hoje.month, hoje.day) < (data_nascimento.month, data_nascimento.day):
        idade -= 1
    return idade


def indexar(itens: Iterable) -> dict:
    return {item.id: item for item in itens}


def transform_turma(row: TurmaRow) -> Turma:
    return Turma(
        id=row.id,
        nome=row.nome,
        faixa_etaria=row.faixa_etaria,
        cor=row.cor,
        alunos_count=row.alunos_count or 0,
        professor_id=row.professor_id,
        criado_em=row.created_at,
    )


def transform_aluno(row: AlunoRow, turmas_by_id: dict, hoje: date = None) -> Aluno:
    turma = turmas_by_id.get(row.turma_id)
    return Aluno(
        id=row.id,
        nome=row.nome,
        idade=calcular_idade(row.data_nascimento, hoje),
        turma_id=row.turma_id,
        turma=turma.nome if turma else SEM_TURMA,
        data_nascimento=row.data_nascimento,
        responsavel=row.responsavel,
        telefone=row.telefone or '',
        observacoes=row.observacoes or '',
        relatorios_count=row.relatorios_count or 0,
        observacoes_count=row.observacoes_count or 0,
        professor_id=row.professor_id,
        criado_em=row.created_at,
    )


def transform_relatorio(row: RelatorioRow, alunos_by_id: dict) -> Relatorio:
    # Aluno fora do conjunto carregado não pode derrubar a listagem
    aluno = alunos_by_id.get(row.aluno_id)
    return Relatorio(
        id=row.id,
        aluno_id=row.aluno_id,
        aluno_nome=aluno.nome if aluno else ALUNO_DESCONHECIDO,
        turma=aluno.turma if aluno else SEM_TURMA,
        titulo=row.titulo,
        periodo=row.periodo,
        conteudo=row.conteudo or '',
        observacoes=row.observacoes or '',
        status=row.status,
        criado_em=row.created_at,
        atualizado_em=row.updated_at,
        gerado_por_ia=row.gerado_por_ia,
    )


def transform_observacao(row: ObservacaoRow, alunos_by_id: dict) -> Observacao:
    aluno = alunos_by_id.get(row.id_aluno)
    return Observacao(
        id=row.id,
        id_aluno=row.id_aluno,
        aluno_nome=aluno.nome if aluno else ALUNO_NAO_ENCONTRADO,
        data_registro=row.data_registro,
        tipo_obs=row.tipo_obs,
        range_avaliacao=row.range_avaliacao,
        obs=row.obs,
        criado_em=row.created_at,
        atualizado_em=row.updated_at,
    )
