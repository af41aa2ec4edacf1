"""
Camada de Acesso a Dados (Repositórios)

Um repositório por entidade (turmas, alunos, observações, relatórios), todos
com a mesma forma: list, get, create, update, delete e delete_with_validation.
Toda operação passa primeiro pelo AccessControl.

O Firestore não tem ON DELETE CASCADE nem gatilhos. Por isso:
- exclusões de turma/aluno removem os filhos explicitamente, em WriteBatch,
  filhos primeiro e o pai por último;
- os contadores (alunos_count, relatorios_count, observacoes_count) são
  recontados com consultas de contagem após cada escrita que os afeta.
"""

import unicodedata
from datetime import date, datetime
from statistics import mean

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from pydantic import ValidationError

from .constants import (
    COLECAO_ALUNOS,
    COLECAO_OBSERVACOES,
    COLECAO_RELATORIOS,
    COLECAO_TURMAS,
    LIMITE_BATCH,
    TIPO_ADMIN,
    TIPOS_OBSERVACAO,
)
from .database import backend
from .errors import BackendError, InvalidInput, NotFound
from .logger import get_logger
from .schemas import (
    AlunoCreate,
    AlunoRow,
    AlunoUpdate,
    DeleteResult,
    EstatisticasTurma,
    ObservacaoCreate,
    ObservacaoRow,
    ObservacaoUpdate,
    ProgressoTipo,
    RelatorioCreate,
    RelatorioRow,
    RelatorioUpdate,
    RemovedCounts,
    TurmaCreate,
    TurmaRow,
    TurmaUpdate,
    validar,
)

logger = get_logger(__name__)


def _para_firestore(dados: dict) -> dict:
    """O Firestore não grava `date`; datas puras viram 'AAAA-MM-DD'."""
    return {
        chave: valor.isoformat() if isinstance(valor, date) and not isinstance(valor, datetime) else valor
        for chave, valor in dados.items()
    }


def normalizar_texto(texto: str) -> str:
    nfkd = unicodedata.normalize('NFKD', texto or '')
    return "".join(c for c in nfkd if not unicodedata.combining(c)).casefold()


class _Repositorio:
    colecao = None
    entidade = 'Registro'
    linha = None
    entrada_create = None
    entrada_update = None
    ordenacao = ('created_at', firestore.Query.DESCENDING)
    registra_atualizacao = False

    def __init__(self, database):
        self.database = database

    @property
    def db(self):
        return self.database.client

    @property
    def acesso(self):
        return self.database.acesso

    def _ref(self):
        return self.db.collection(self.colecao)

    # --- Conversão das linhas ---

    def _converter(self, snapshot):
        try:
            return self.linha.model_validate({**(snapshot.to_dict() or {}), 'id': snapshot.id})
        except ValidationError as e:
            logger.error(f"{self.colecao}/{snapshot.id} em formato inesperado: {e}")
            raise BackendError(f"{self.entidade} com dados inconsistentes no banco.") from e

    def _linhas(self, snapshots) -> list:
        linhas = []
        for snapshot in snapshots:
            try:
                linhas.append(self._converter(snapshot))
            except BackendError:
                # Linha malformada fica de fora da listagem; o erro já foi logado
                continue
        return linhas

    # --- Consultas ---

    def _escopo(self, profile, filter_by_owner: bool = True):
        query = self._ref()
        if filter_by_owner or profile.tipo != TIPO_ADMIN or not self.database.admin_listagem_global:
            query = query.where('professor_id', '==', profile.id)
        return query

    def _obter(self, registro_id: str, profile):
        if not registro_id:
            raise NotFound(f"{self.entidade} não encontrado(a).")
        with backend(f"buscar {self.entidade.lower()}"):
            doc = self._ref().document(registro_id).get()
        if not doc.exists:
            raise NotFound(f"{self.entidade} não encontrado(a).")
        linha = self._converter(doc)
        if profile.tipo != TIPO_ADMIN and linha.professor_id != profile.id:
            # Registro de outro professor é tratado como inexistente
            raise NotFound(f"{self.entidade} não encontrado(a).")
        return linha

    def _reler(self, ref):
        with backend(f"reler {self.entidade.lower()}"):
            doc = ref.get()
        return self._converter(doc)

    def _filhos(self, colecao: str, campo: str, valor: str, dono: str):
        return (
            self.db.collection(colecao)
            .where(campo, '==', valor)
            .where('professor_id', '==', dono)
        )

    def _contar(self, colecao: str, campo: str, valor: str, dono: str) -> int:
        with backend(f"contar {colecao}"):
            resultado = self._filhos(colecao, campo, valor, dono).count(alias='total').get()
        return int(resultado[0][0].value)

    def _refs_filhos(self, colecao: str, campo: str, valor: str, dono: str) -> list:
        with backend(f"listar dependentes em {colecao}"):
            return [doc.reference for doc in self._filhos(colecao, campo, valor, dono).stream()]

    def _excluir_em_lote(self, refs: list) -> None:
        """Exclui na ordem recebida, em lotes de até 500 escritas."""
        with backend(f"excluir {self.entidade.lower()}"):
            for inicio in range(0, len(refs), LIMITE_BATCH):
                batch = self.db.batch()
                for ref in refs[inicio:inicio + LIMITE_BATCH]:
                    batch.delete(ref)
                batch.commit()

    # --- Recontagem de contadores ---

    def _gravar_contadores(self, colecao: str, registro_id: str, contadores: dict) -> None:
        with backend(f"atualizar contadores em {colecao}"):
            try:
                self.db.collection(colecao).document(registro_id).update(contadores)
            except google_exceptions.NotFound:
                # Pai já removido: não há contador a manter
                logger.info(f"{colecao}/{registro_id} não existe mais; recontagem ignorada.")

    def _recontar_turma(self, turma_id: str, dono: str) -> None:
        total = self._contar(COLECAO_ALUNOS, 'turma_id', turma_id, dono)
        self._gravar_contadores(COLECAO_TURMAS, turma_id, {'alunos_count': total})

    def _recontar_aluno(self, aluno_id: str, dono: str) -> None:
        self._gravar_contadores(COLECAO_ALUNOS, aluno_id, {
            'observacoes_count': self._contar(COLECAO_OBSERVACOES, 'id_aluno', aluno_id, dono),
            'relatorios_count': self._contar(COLECAO_RELATORIOS, 'aluno_id', aluno_id, dono),
        })

    # --- Ganchos por entidade ---

    def _preparar_criacao(self, dados: dict, dono: str, profile) -> dict:
        return dados

    def _preparar_atualizacao(self, atual, dados: dict, profile) -> dict:
        return dados

    def _apos_criacao(self, linha) -> None:
        pass

    def _apos_atualizacao(self, anterior, linha) -> None:
        pass

    def _excluir(self, linha) -> RemovedCounts:
        self._excluir_em_lote([self._ref().document(linha.id)])
        return RemovedCounts()

    # --- Operações ---

    def list(self, filter_by_owner: bool = True) -> list:
        _, profile = self.acesso.validate_permissions()
        campo, direcao = self.ordenacao
        with backend(f"listar {self.colecao}"):
            snapshots = list(self._escopo(profile, filter_by_owner).order_by(campo, direction=direcao).stream())
        return self._linhas(snapshots)

    def get(self, registro_id: str):
        _, profile = self.acesso.validate_permissions()
        return self._obter(registro_id, profile)

    def create(self, fields: dict, for_professor_id: str = None):
        # Validação local antes de qualquer ida ao banco
        entrada = validar(self.entrada_create, fields)
        user, profile = self.acesso.validate_permissions()
        dono = self.acesso.determine_owner(for_professor_id)

        dados = self._preparar_criacao(entrada.model_dump(), dono, profile)
        dados.update(professor_id=dono, created_at=firestore.SERVER_TIMESTAMP)
        if self.registra_atualizacao:
            dados['updated_at'] = firestore.SERVER_TIMESTAMP

        ref = self._ref().document()
        with backend(f"criar {self.entidade.lower()}"):
            ref.set(_para_firestore(dados))
        logger.info(f"{self.entidade} criado(a): {ref.id} (professor {dono}) por {user.email}")

        linha = self._reler(ref)
        self._apos_criacao(linha)
        return linha

    def update(self, registro_id: str, fields: dict):
        entrada = validar(self.entrada_update, fields)
        user, profile = self.acesso.validate_permissions()
        atual = self._obter(registro_id, profile)

        dados = entrada.model_dump(exclude_unset=True, exclude_none=True)
        if not dados:
            return atual
        dados = self._preparar_atualizacao(atual, dados, profile)
        if self.registra_atualizacao:
            dados['updated_at'] = firestore.SERVER_TIMESTAMP

        ref = self._ref().document(registro_id)
        with backend(f"atualizar {self.entidade.lower()}"):
            ref.update(_para_firestore(dados))
        logger.info(f"{self.entidade} atualizado(a): {registro_id} ({', '.join(dados)}) por {user.email}")

        linha = self._reler(ref)
        self._apos_atualizacao(atual, linha)
        return linha

    def delete(self, registro_id: str) -> bool:
        user, profile = self.acesso.validate_permissions()
        linha = self._obter(registro_id, profile)
        self._excluir(linha)
        logger.info(f"{self.entidade} excluído(a): {registro_id} por {user.email}")
        return True

    def delete_with_validation(self, registro_id: str) -> DeleteResult:
        user, profile = self.acesso.validate_permissions()
        linha = self._obter(registro_id, profile)
        dono = self.acesso.get_owner_name(linha.professor_id)

        removidos = self._excluir(linha)
        logger.info(
            f"{self.entidade} excluído(a) com validação: {registro_id} (professor {dono}) por {user.email}; "
            f"removidos {removidos.alunos} alunos, {removidos.observacoes} observações, "
            f"{removidos.relatorios} relatórios"
        )
        return DeleteResult(success=True, owner_name=dono, removed_counts=removidos)


class TurmaRepository(_Repositorio):
    colecao = COLECAO_TURMAS
    entidade = 'Turma'
    linha = TurmaRow
    entrada_create = TurmaCreate
    entrada_update = TurmaUpdate

    def _preparar_criacao(self, dados, dono, profile):
        dados['alunos_count'] = 0
        return dados

    def _excluir(self, linha) -> RemovedCounts:
        dono = linha.professor_id
        alunos = self._refs_filhos(COLECAO_ALUNOS, 'turma_id', linha.id, dono)
        observacoes, relatorios = [], []
        for aluno in alunos:
            observacoes += self._refs_filhos(COLECAO_OBSERVACOES, 'id_aluno', aluno.id, dono)
            relatorios += self._refs_filhos(COLECAO_RELATORIOS, 'aluno_id', aluno.id, dono)

        self._excluir_em_lote([*observacoes, *relatorios, *alunos, self._ref().document(linha.id)])
        return RemovedCounts(alunos=len(alunos), observacoes=len(observacoes), relatorios=len(relatorios))

    def contar_dependentes(self, turma_id: str) -> RemovedCounts:
        """Quantos registros cairiam junto com a turma (só contagens)."""
        _, profile = self.acesso.validate_permissions()
        turma = self._obter(turma_id, profile)
        dono = turma.professor_id

        with backend("listar alunos da turma"):
            alunos = [doc.id for doc in self._filhos(COLECAO_ALUNOS, 'turma_id', turma_id, dono).stream()]
        return RemovedCounts(
            alunos=len(alunos),
            observacoes=sum(self._contar(COLECAO_OBSERVACOES, 'id_aluno', a, dono) for a in alunos),
            relatorios=sum(self._contar(COLECAO_RELATORIOS, 'aluno_id', a, dono) for a in alunos),
        )

    def estatisticas(self, turma_id: str) -> EstatisticasTurma:
        _, profile = self.acesso.validate_permissions()
        turma = self._obter(turma_id, profile)
        dono = turma.professor_id

        with backend("listar alunos da turma"):
            alunos = [doc.id for doc in self._filhos(COLECAO_ALUNOS, 'turma_id', turma_id, dono).stream()]

        observacoes = []
        total_relatorios = 0
        for aluno_id in alunos:
            with backend("listar observações do aluno"):
                snapshots = list(self._filhos(COLECAO_OBSERVACOES, 'id_aluno', aluno_id, dono).stream())
            observacoes += self.database.observacoes._linhas(snapshots)
            total_relatorios += self._contar(COLECAO_RELATORIOS, 'aluno_id', aluno_id, dono)

        por_tipo = {}
        for obs in observacoes:
            por_tipo[obs.tipo_obs] = por_tipo.get(obs.tipo_obs, 0) + 1

        return EstatisticasTurma(
            turma_id=turma_id,
            total_alunos=len(alunos),
            total_observacoes=len(observacoes),
            total_relatorios=total_relatorios,
            media_avaliacao=round(mean(o.range_avaliacao for o in observacoes), 2) if observacoes else None,
            por_tipo=por_tipo,
        )


class AlunoRepository(_Repositorio):
    colecao = COLECAO_ALUNOS
    entidade = 'Aluno'
    linha = AlunoRow
    entrada_create = AlunoCreate
    entrada_update = AlunoUpdate
    ordenacao = ('nome', firestore.Query.ASCENDING)

    def _turma_do_dono(self, turma_id: str, dono: str, profile):
        turma = self.database.turmas._obter(turma_id, profile)
        if turma.professor_id != dono:
            raise InvalidInput("A turma informada pertence a outro professor.")
        return turma

    def _preparar_criacao(self, dados, dono, profile):
        self._turma_do_dono(dados['turma_id'], dono, profile)
        dados.update(relatorios_count=0, observacoes_count=0)
        return dados

    def _preparar_atualizacao(self, atual, dados, profile):
        if 'turma_id' in dados and dados['turma_id'] != atual.turma_id:
            self._turma_do_dono(dados['turma_id'], atual.professor_id, profile)
        return dados

    def _apos_criacao(self, linha):
        self._recontar_turma(linha.turma_id, linha.professor_id)

    def _apos_atualizacao(self, anterior, linha):
        if anterior.turma_id != linha.turma_id:
            self._recontar_turma(anterior.turma_id, linha.professor_id)
            self._recontar_turma(linha.turma_id, linha.professor_id)

    def _excluir(self, linha) -> RemovedCounts:
        dono = linha.professor_id
        observacoes = self._refs_filhos(COLECAO_OBSERVACOES, 'id_aluno', linha.id, dono)
        relatorios = self._refs_filhos(COLECAO_RELATORIOS, 'aluno_id', linha.id, dono)

        self._excluir_em_lote([*observacoes, *relatorios, self._ref().document(linha.id)])
        self._recontar_turma(linha.turma_id, dono)
        return RemovedCounts(observacoes=len(observacoes), relatorios=len(relatorios))

    def contar_dependentes(self, aluno_id: str) -> RemovedCounts:
        _, profile = self.acesso.validate_permissions()
        aluno = self._obter(aluno_id, profile)
        return RemovedCounts(
            observacoes=self._contar(COLECAO_OBSERVACOES, 'id_aluno', aluno_id, aluno.professor_id),
            relatorios=self._contar(COLECAO_RELATORIOS, 'aluno_id', aluno_id, aluno.professor_id),
        )


class ObservacaoRepository(_Repositorio):
    colecao = COLECAO_OBSERVACOES
    entidade = 'Observação'
    linha = ObservacaoRow
    entrada_create = ObservacaoCreate
    entrada_update = ObservacaoUpdate
    ordenacao = ('data_registro', firestore.Query.DESCENDING)
    registra_atualizacao = True

    def _preparar_criacao(self, dados, dono, profile):
        aluno = self.database.alunos._obter(dados['id_aluno'], profile)
        if aluno.professor_id != dono:
            raise InvalidInput("O aluno informado pertence a outro professor.")
        if dados.get('data_registro') is None:
            dados['data_registro'] = firestore.SERVER_TIMESTAMP
        return dados

    def _apos_criacao(self, linha):
        self._recontar_aluno(linha.id_aluno, linha.professor_id)

    def _excluir(self, linha) -> RemovedCounts:
        self._excluir_em_lote([self._ref().document(linha.id)])
        self._recontar_aluno(linha.id_aluno, linha.professor_id)
        return RemovedCounts(observacoes=1)

    # --- Consultas de acompanhamento ---

    def list_por_aluno(self, aluno_id: str) -> list:
        _, profile = self.acesso.validate_permissions()
        aluno = self.database.alunos._obter(aluno_id, profile)
        query = self._filhos(COLECAO_OBSERVACOES, 'id_aluno', aluno_id, aluno.professor_id)
        with backend("listar observações do aluno"):
            snapshots = list(query.order_by('data_registro', direction=firestore.Query.DESCENDING).stream())
        return self._linhas(snapshots)

    def media_avaliacao(self, aluno_id: str, tipo_obs: str = None):
        avaliacoes = [
            obs.range_avaliacao for obs in self.list_por_aluno(aluno_id)
            if tipo_obs is None or obs.tipo_obs == tipo_obs
        ]
        return round(mean(avaliacoes), 2) if avaliacoes else None

    def progresso_aluno(self, aluno_id: str) -> list:
        """Resumo por tipo de observação, na ordem de TIPOS_OBSERVACAO."""
        por_tipo = {}
        for obs in self.list_por_aluno(aluno_id):
            por_tipo.setdefault(obs.tipo_obs, []).append(obs)

        progresso = []
        for tipo in TIPOS_OBSERVACAO:
            registros = por_tipo.get(tipo)
            if not registros:
                continue
            # list_por_aluno já vem do mais recente para o mais antigo
            ultima = registros[0]
            progresso.append(ProgressoTipo(
                tipo_obs=tipo,
                total=len(registros),
                media=round(mean(o.range_avaliacao for o in registros), 2),
                ultima_avaliacao=ultima.range_avaliacao,
                ultimo_registro=ultima.data_registro,
            ))
        return progresso

    def observacoes_periodo(self, inicio: datetime, fim: datetime, aluno_id: str = None) -> list:
        if inicio > fim:
            raise InvalidInput("A data inicial deve ser anterior à final.")
        _, profile = self.acesso.validate_permissions()
        if aluno_id:
            dono = self.database.alunos._obter(aluno_id, profile).professor_id
            query = self._filhos(COLECAO_OBSERVACOES, 'id_aluno', aluno_id, dono)
        else:
            query = self._escopo(profile)
        query = query.where('data_registro', '>=', inicio).where('data_registro', '<=', fim)
        with backend("listar observações do período"):
            snapshots = list(query.order_by('data_registro', direction=firestore.Query.DESCENDING).stream())
        return self._linhas(snapshots)

    def buscar(self, termo: str) -> list:
        """Busca textual no campo `obs`, sem diferenciar maiúsculas e acentos."""
        alvo = normalizar_texto(termo).strip()
        if not alvo:
            return self.list()
        return [obs for obs in self.list() if alvo in normalizar_texto(obs.obs)]


class RelatorioRepository(_Repositorio):
    colecao = COLECAO_RELATORIOS
    entidade = 'Relatório'
    linha = RelatorioRow
    entrada_create = RelatorioCreate
    entrada_update = RelatorioUpdate
    registra_atualizacao = True

    def _preparar_criacao(self, dados, dono, profile):
        aluno = self.database.alunos._obter(dados['aluno_id'], profile)
        if aluno.professor_id != dono:
            raise InvalidInput("O aluno informado pertence a outro professor.")
        return dados

    def _apos_criacao(self, linha):
        self._recontar_aluno(linha.aluno_id, linha.professor_id)

    def _excluir(self, linha) -> RemovedCounts:
        self._excluir_em_lote([self._ref().document(linha.id)])
        self._recontar_aluno(linha.aluno_id, linha.professor_id)
        return RemovedCounts(relatorios=1)


class Database:
    """Facade com um repositório por entidade, montada por requisição."""

    def __init__(self, client, acesso, admin_listagem_global: bool = False):
        self.client = client
        self.acesso = acesso
        self.admin_listagem_global = admin_listagem_global
        self.turmas = TurmaRepository(self)
        self.alunos = AlunoRepository(self)
        self.observacoes = ObservacaoRepository(self)
        self.relatorios = RelatorioRepository(self)
