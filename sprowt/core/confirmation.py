"""
Fluxo de Confirmação.

Cada pedido de confirmação vira um Future[bool] numa fila FIFO: a interface
mostra o primeiro da fila e o resolve com confirmar (True) ou cancelar /
fechar sem escolher (False). Pedidos simultâneos esperam a sua vez em vez
de sobrescrever o anterior.
"""

import threading
import uuid
from collections import deque
from concurrent.futures import Future
from dataclasses import asdict, dataclass, field
from typing import Optional

from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConfirmationOptions:
    title: str
    message: str
    confirm_text: str = 'Confirmar'
    cancel_text: str = 'Cancelar'
    variant: str = 'default'

    def to_dict(self) -> dict:
        dados = asdict(self)
        return {
            'title': dados['title'],
            'message': dados['message'],
            'confirmText': dados['confirm_text'],
            'cancelText': dados['cancel_text'],
            'variant': dados['variant'],
        }


@dataclass
class ConfirmationRequest:
    options: ConfirmationOptions
    future: Future = field(default_factory=Future)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


class ConfirmationQueue:
    def __init__(self):
        self._pendentes = deque()
        self._lock = threading.Lock()

    def confirm(self, options: ConfirmationOptions) -> Future:
        pedido = ConfirmationRequest(options)
        with self._lock:
            self._pendentes.append(pedido)
        return pedido.future

    def ask(self, options: ConfirmationOptions, timeout: float = None) -> bool:
        """Versão bloqueante de confirm(), para interfaces com thread própria."""
        return self.confirm(options).result(timeout=timeout)

    @property
    def current(self) -> Optional[ConfirmationRequest]:
        with self._lock:
            return self._pendentes[0] if self._pendentes else None

    @property
    def is_open(self) -> bool:
        return self.current is not None

    def __len__(self):
        with self._lock:
            return len(self._pendentes)

    def _resolver(self, valor: bool, pedido_id: str = None) -> bool:
        with self._lock:
            if not self._pendentes:
                return False
            if pedido_id is None:
                pedido = self._pendentes.popleft()
            else:
                pedido = next((p for p in self._pendentes if p.id == pedido_id), None)
                if pedido is None:
                    return False
                self._pendentes.remove(pedido)
        pedido.future.set_result(valor)
        return True

    def handle_confirm(self, pedido_id: str = None) -> bool:
        return self._resolver(True, pedido_id)

    def handle_cancel(self, pedido_id: str = None) -> bool:
        return self._resolver(False, pedido_id)

    def dismiss(self, pedido_id: str = None) -> bool:
        """Fechar o diálogo sem escolher equivale a cancelar."""
        return self._resolver(False, pedido_id)


class ConfirmacaoPreAutorizada:
    """
    Ponte entre o fluxo de confirmação e uma requisição HTTP sem estado.

    O navegador reenvia a ação com os títulos das etapas que o usuário já
    confirmou; uma etapa ainda não confirmada é recusada e fica em
    `pendente` para ser devolvida ao navegador.
    """

    def __init__(self, titulos_aceitos=()):
        self.aceitos = set(titulos_aceitos or ())
        self.pendente: Optional[ConfirmationOptions] = None

    def __call__(self, options: ConfirmationOptions) -> bool:
        if options.title in self.aceitos:
            return True
        self.pendente = options
        return False
