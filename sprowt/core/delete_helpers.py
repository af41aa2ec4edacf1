"""
Exclusões com confirmação.

Junta o fluxo de confirmação à camada de dados: pergunta ao usuário, só
então chama delete_with_validation e devolve o resumo para o aviso final.
Se a confirmação for recusada, nenhuma chamada ao banco é feita.
"""

from concurrent.futures import Future
from typing import Optional

from .confirmation import ConfirmationOptions
from .errors import SprowtError
from .logger import get_logger
from .schemas import RemovedCounts

logger = get_logger(__name__)


def _aguardar(resposta) -> bool:
    if isinstance(resposta, Future):
        return bool(resposta.result())
    return bool(resposta)


class DeleteHelper:
    """
    Parâmetros comuns:
        confirm: callable(ConfirmationOptions) -> bool | Future[bool]
        confirmar: pular a confirmação quando False
        notificar: callable(titulo, descricao, variante) para o aviso ao usuário
        on_success: callable(DeleteResult)
        on_error: callable(SprowtError)
    """

    def __init__(self, database):
        self.database = database

    def _confirmar_etapas(self, etapas, confirm, confirmar) -> bool:
        if not (confirmar and confirm):
            return True
        for options in etapas:
            if not _aguardar(confirm(options)):
                logger.info(f"Exclusão cancelada na etapa '{options.title}'.")
                return False
        return True

    def _executar(self, repositorio, registro_id, etapas, rotulo, descrever,
                  confirm=None, confirmar=True, notificar=None,
                  on_success=None, on_error=None) -> bool:
        if not self._confirmar_etapas(etapas, confirm, confirmar):
            return False

        try:
            resultado = repositorio.delete_with_validation(registro_id)
        except SprowtError as e:
            logger.error(f"Erro ao deletar {rotulo}: {e.mensagem}", exc_info=True)
            if notificar:
                notificar(f"❌ Erro ao deletar {rotulo}", e.mensagem, 'destructive')
            if on_error:
                on_error(e)
            return False

        if notificar:
            titulo, descricao = descrever(resultado.removed_counts)
            notificar(titulo, descricao, 'default')
        if on_success:
            on_success(resultado)
        return True

    def delete_aluno(self, aluno_id: str, aluno_nome: str, **opcoes) -> bool:
        etapas = [ConfirmationOptions(
            title="Deletar Aluno",
            message=(
                f'Deseja realmente deletar o aluno "{aluno_nome}"?\n\n'
                "Esta ação irá remover permanentemente:\n"
                "• Todas as observações pedagógicas\n"
                "• Todos os relatórios gerados\n"
                "• Todo o histórico no sistema\n\n"
                "Esta ação não pode ser desfeita."
            ),
            confirm_text="Deletar",
            variant='destructive',
        )]

        def descrever(removidos: RemovedCounts):
            return "✅ Aluno deletado com sucesso!", (
                f"{aluno_nome} foi removido. Dados deletados: "
                f"{removidos.observacoes} observações, {removidos.relatorios} relatórios."
            )

        return self._executar(self.database.alunos, aluno_id, etapas, 'aluno', descrever, **opcoes)

    def delete_turma(self, turma_id: str, turma_nome: str,
                     dependentes: Optional[RemovedCounts] = None, **opcoes) -> bool:
        """Turma exige duas confirmações seguidas antes da exclusão."""
        impacto = ""
        if dependentes is not None:
            impacto = (
                f"\n\nSerão removidos {dependentes.alunos} alunos, "
                f"{dependentes.observacoes} observações e {dependentes.relatorios} relatórios."
            )
        etapas = [
            ConfirmationOptions(
                title="Deletar Turma",
                message=(
                    f'Deseja realmente deletar a turma "{turma_nome}"?\n\n'
                    f"Esta ação irá deletar a turma E TODOS OS ALUNOS vinculados!{impacto}"
                ),
                confirm_text="Continuar",
                variant='destructive',
            ),
            ConfirmationOptions(
                title="⚠️ CONFIRMAÇÃO FINAL",
                message=(
                    f'ATENÇÃO: Você está prestes a deletar a turma "{turma_nome}".\n\n'
                    "TODOS os alunos, observações e relatórios serão PERDIDOS PARA SEMPRE!\n\n"
                    "Esta é uma ação IRREVERSÍVEL."
                ),
                confirm_text="SIM, DELETAR TUDO",
                variant='destructive',
            ),
        ]

        def descrever(removidos: RemovedCounts):
            return "✅ Turma deletada com sucesso!", (
                f"{turma_nome} foi removida. Dados deletados: {removidos.alunos} alunos, "
                f"{removidos.observacoes} observações, {removidos.relatorios} relatórios."
            )

        return self._executar(self.database.turmas, turma_id, etapas, 'turma', descrever, **opcoes)

    def delete_observacao(self, observacao_id: str, **opcoes) -> bool:
        etapas = [ConfirmationOptions(
            title="Deletar Observação",
            message="Deseja realmente deletar esta observação?",
            confirm_text="Deletar",
            variant='destructive',
        )]

        def descrever(_removidos):
            return "✅ Observação deletada", "A observação foi removida com sucesso."

        return self._executar(self.database.observacoes, observacao_id, etapas, 'observação', descrever, **opcoes)

    def delete_relatorio(self, relatorio_id: str, relatorio_titulo: str, **opcoes) -> bool:
        etapas = [ConfirmationOptions(
            title="Deletar Relatório",
            message=f'Deseja realmente deletar o relatório "{relatorio_titulo}"?',
            confirm_text="Deletar",
            variant='destructive',
        )]

        def descrever(_removidos):
            return "✅ Relatório deletado", f'"{relatorio_titulo}" foi removido com sucesso.'

        return self._executar(self.database.relatorios, relatorio_id, etapas, 'relatório', descrever, **opcoes)
