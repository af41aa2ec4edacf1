"""
Esquemas de dados (DTOs) usando Pydantic.

Três famílias de modelos:
1. Linhas (*Row): o formato snake_case gravado no Firestore, validado na
   leitura para não confiar cegamente no que vem do banco.
2. Entradas (*Create / *Update): validação de formulários antes de qualquer
   chamada ao banco.
3. Visões (Turma, Aluno, Relatorio, Observacao): o formato exibido ao
   navegador, serializado em camelCase por um único mapeamento por entidade.
"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .constants import (
    AVALIACAO_MAX,
    AVALIACAO_MIN,
    COR_PADRAO,
    CORES_TURMA,
    OBS_MAX_CARACTERES,
    STATUS_RASCUNHO,
)
from .errors import InvalidInput

TipoObservacao = Literal[
    'comportamental', 'cognitivo', 'motora', 'alimentacao',
    'social', 'comunicacao', 'autonomia', 'rotina',
]
StatusRelatorio = Literal['rascunho', 'concluido']
CorTurma = Literal[tuple(CORES_TURMA)]


def validar(modelo, dados: dict):
    """Valida `dados` contra `modelo`, convertendo falhas em InvalidInput."""
    try:
        return modelo.model_validate(dados)
    except ValidationError as e:
        campos = ", ".join(
            f"{'.'.join(str(p) for p in erro['loc'])}: {erro['msg']}" for erro in e.errors()
        )
        raise InvalidInput(f"Dados inválidos ({campos}).") from e


# --- Linhas do Firestore ---

class _Linha(BaseModel):
    model_config = ConfigDict(extra='ignore')


class ProfileRow(_Linha):
    id: str
    nome: str = ''
    # Qualquer texto é aceito aqui; papéis desconhecidos são barrados no controle de acesso
    tipo: str


class TurmaRow(_Linha):
    id: str
    nome: str
    faixa_etaria: str
    cor: str = COR_PADRAO
    alunos_count: int = 0
    professor_id: str
    created_at: Optional[datetime] = None


class AlunoRow(_Linha):
    id: str
    nome: str
    turma_id: str
    data_nascimento: date
    responsavel: str
    telefone: Optional[str] = None
    observacoes: Optional[str] = None
    relatorios_count: int = 0
    observacoes_count: int = 0
    professor_id: str
    created_at: Optional[datetime] = None


class ObservacaoRow(_Linha):
    id: str
    id_aluno: str
    data_registro: datetime
    tipo_obs: TipoObservacao
    range_avaliacao: int = Field(ge=AVALIACAO_MIN, le=AVALIACAO_MAX)
    obs: str
    professor_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RelatorioRow(_Linha):
    id: str
    aluno_id: str
    titulo: str
    periodo: str
    conteudo: str = ''
    observacoes: Optional[str] = None
    status: StatusRelatorio = STATUS_RASCUNHO
    gerado_por_ia: bool = False
    professor_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- Entradas ---

class _Entrada(BaseModel):
    model_config = ConfigDict(extra='forbid', str_strip_whitespace=True)


class TurmaCreate(_Entrada):
    nome: str = Field(min_length=1, max_length=100)
    faixa_etaria: str = Field(min_length=1, max_length=50)
    cor: CorTurma = COR_PADRAO


class TurmaUpdate(_Entrada):
    nome: Optional[str] = Field(None, min_length=1, max_length=100)
    faixa_etaria: Optional[str] = Field(None, min_length=1, max_length=50)
    cor: Optional[CorTurma] = None


class AlunoCreate(_Entrada):
    nome: str = Field(min_length=1, max_length=100)
    turma_id: str = Field(min_length=1)
    data_nascimento: date
    responsavel: str = Field(min_length=1, max_length=100)
    telefone: Optional[str] = Field(None, max_length=20)
    observacoes: Optional[str] = None


class AlunoUpdate(_Entrada):
    nome: Optional[str] = Field(None, min_length=1, max_length=100)
    turma_id: Optional[str] = Field(None, min_length=1)
    data_nascimento: Optional[date] = None
    responsavel: Optional[str] = Field(None, min_length=1, max_length=100)
    telefone: Optional[str] = Field(None, max_length=20)
    observacoes: Optional[str] = None


class ObservacaoCreate(_Entrada):
    id_aluno: str = Field(min_length=1)
    tipo_obs: TipoObservacao
    range_avaliacao: int = Field(ge=AVALIACAO_MIN, le=AVALIACAO_MAX, strict=True)
    obs: str = Field(min_length=1, max_length=OBS_MAX_CARACTERES)
    data_registro: Optional[datetime] = None


class ObservacaoUpdate(_Entrada):
    tipo_obs: Optional[TipoObservacao] = None
    range_avaliacao: Optional[int] = Field(None, ge=AVALIACAO_MIN, le=AVALIACAO_MAX, strict=True)
    obs: Optional[str] = Field(None, min_length=1, max_length=OBS_MAX_CARACTERES)
    data_registro: Optional[datetime] = None


class RelatorioCreate(_Entrada):
    aluno_id: str = Field(min_length=1)
    titulo: str = Field(min_length=1, max_length=200)
    periodo: str = Field(min_length=1, max_length=100)
    conteudo: str = ''
    observacoes: Optional[str] = None
    status: StatusRelatorio = STATUS_RASCUNHO
    gerado_por_ia: bool = False


class RelatorioUpdate(_Entrada):
    titulo: Optional[str] = Field(None, min_length=1, max_length=200)
    periodo: Optional[str] = Field(None, min_length=1, max_length=100)
    conteudo: Optional[str] = None
    observacoes: Optional[str] = None
    status: Optional[StatusRelatorio] = None
    gerado_por_ia: Optional[bool] = None


# --- Visões (camelCase no navegador) ---

class _Visao(BaseModel):
    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode='json', by_alias=True)


class Profile(_Visao):
    id: str
    nome: str
    tipo: str


class Turma(_Visao):
    id: str
    nome: str
    faixa_etaria: str = Field(serialization_alias='faixaEtaria')
    cor: str
    alunos_count: int = Field(0, serialization_alias='alunosCount')
    professor_id: str = Field(serialization_alias='professorId')
    criado_em: Optional[datetime] = Field(None, serialization_alias='criadoEm')


class Aluno(_Visao):
    id: str
    nome: str
    idade: int
    turma_id: str = Field(serialization_alias='turmaId')
    turma: str
    data_nascimento: date = Field(serialization_alias='dataNascimento')
    responsavel: str
    telefone: str = ''
    observacoes: str = ''
    relatorios_count: int = Field(0, serialization_alias='relatoriosCount')
    observacoes_count: int = Field(0, serialization_alias='observacoesCount')
    professor_id: str = Field(serialization_alias='professorId')
    criado_em: Optional[datetime] = Field(None, serialization_alias='criadoEm')


class Observacao(_Visao):
    id: str
    id_aluno: str = Field(serialization_alias='idAluno')
    aluno_nome: str = Field(serialization_alias='alunoNome')
    data_registro: datetime = Field(serialization_alias='dataRegistro')
    tipo_obs: str = Field(serialization_alias='tipoObs')
    range_avaliacao: int = Field(serialization_alias='rangeAvaliacao')
    obs: str
    criado_em: Optional[datetime] = Field(None, serialization_alias='criadoEm')
    atualizado_em: Optional[datetime] = Field(None, serialization_alias='atualizadoEm')


class Relatorio(_Visao):
    id: str
    aluno_id: str = Field(serialization_alias='alunoId')
    aluno_nome: str = Field(serialization_alias='alunoNome')
    turma: str
    titulo: str
    periodo: str
    conteudo: str
    observacoes: str = ''
    status: str
    criado_em: Optional[datetime] = Field(None, serialization_alias='criadoEm')
    atualizado_em: Optional[datetime] = Field(None, serialization_alias='atualizadoEm')
    gerado_por_ia: bool = Field(False, serialization_alias='geradoPorIA')


# --- Agregados (equivalentes às RPCs de relatório) ---

class ProgressoTipo(_Visao):
    tipo_obs: str = Field(serialization_alias='tipoObs')
    total: int
    media: float
    ultima_avaliacao: int = Field(serialization_alias='ultimaAvaliacao')
    ultimo_registro: datetime = Field(serialization_alias='ultimoRegistro')


class EstatisticasTurma(_Visao):
    turma_id: str = Field(serialization_alias='turmaId')
    total_alunos: int = Field(serialization_alias='totalAlunos')
    total_observacoes: int = Field(serialization_alias='totalObservacoes')
    total_relatorios: int = Field(serialization_alias='totalRelatorios')
    media_avaliacao: Optional[float] = Field(None, serialization_alias='mediaAvaliacao')
    por_tipo: dict = Field(default_factory=dict, serialization_alias='porTipo')


# --- Resultados de exclusão ---

class RemovedCounts(_Visao):
    alunos: int = 0
    observacoes: int = 0
    relatorios: int = 0


class DeleteResult(_Visao):
    success: bool
    owner_name: str = Field(serialization_alias='ownerName')
    removed_counts: RemovedCounts = Field(default_factory=RemovedCounts, serialization_alias='removedCounts')
