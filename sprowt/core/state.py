"""
Estado da Aplicação.

Guarda as coleções carregadas (turmas, alunos, relatórios) como tuplas
imutáveis; toda mudança passa pelas funções de substituição ou de recarga.
Os contadores exibidos vêm sempre de uma leitura nova do banco.
"""

from datetime import date
from typing import Callable

from .constants import STATUS_CONCLUIDO
from .errors import SprowtError
from .logger import get_logger
from .transform import indexar, transform_aluno, transform_relatorio, transform_turma

logger = get_logger(__name__)


class AppState:
    def __init__(self, database, hoje: date = None):
        self.database = database
        self.hoje = hoje
        self.turmas = ()
        self.alunos = ()
        self.relatorios = ()
        self.loading = True
        self._ouvintes = []

    def subscribe(self, callback: Callable) -> Callable[[], None]:
        self._ouvintes.append(callback)

        def unsubscribe():
            if callback in self._ouvintes:
                self._ouvintes.remove(callback)

        return unsubscribe

    def _notificar(self) -> None:
        for ouvinte in list(self._ouvintes):
            ouvinte(self)

    def _buscar_turmas_e_alunos(self):
        turmas = tuple(transform_turma(row) for row in self.database.turmas.list())
        turmas_by_id = indexar(turmas)
        alunos = tuple(
            transform_aluno(row, turmas_by_id, self.hoje) for row in self.database.alunos.list()
        )
        return turmas, alunos

    def carregar(self) -> 'AppState':
        """
        Carga coordenada: turmas → alunos → relatórios, pois cada etapa usa o
        índice da anterior. Falha deixa as coleções vazias e loading=False.
        """
        self.loading = True
        try:
            turmas, alunos = self._buscar_turmas_e_alunos()
            alunos_by_id = indexar(alunos)
            relatorios = tuple(
                transform_relatorio(row, alunos_by_id) for row in self.database.relatorios.list()
            )
        except SprowtError as e:
            logger.error(f"Erro ao carregar dados iniciais: {e.mensagem}", exc_info=True)
            turmas, alunos, relatorios = (), (), ()
        finally:
            self.loading = False

        self.turmas, self.alunos, self.relatorios = turmas, alunos, relatorios
        self._notificar()
        return self

    def refresh_alunos(self) -> None:
        """Relê turmas e alunos após qualquer escrita de aluno (não relê relatórios)."""
        self.turmas, self.alunos = self._buscar_turmas_e_alunos()
        self._notificar()

    def on_turmas_change(self, turmas) -> None:
        self.turmas = tuple(turmas)
        self._notificar()

    def on_alunos_change(self, alunos) -> None:
        self.alunos = tuple(alunos)
        self._notificar()

    def on_relatorios_change(self, relatorios) -> None:
        self.relatorios = tuple(relatorios)
        self._notificar()

    def estatisticas(self) -> dict:
        return {
            'turmas': len(self.turmas),
            'alunos': len(self.alunos),
            'relatorios': len(self.relatorios),
            'relatoriosConcluidos': sum(1 for r in self.relatorios if r.status == STATUS_CONCLUIDO),
            'relatoriosIA': sum(1 for r in self.relatorios if r.gerado_por_ia),
        }

    def to_dict(self) -> dict:
        return {
            'loading': self.loading,
            'turmas': [t.to_dict() for t in self.turmas],
            'alunos': [a.to_dict() for a in self.alunos],
            'relatorios': [r.to_dict() for r in self.relatorios],
            'estatisticas': self.estatisticas(),
        }
