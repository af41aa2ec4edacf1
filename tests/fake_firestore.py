"""
Firestore em memória para os testes.

Reproduz só a parte da API usada pelos repositórios: coleções, documentos,
consultas com where/order_by/limit, contagem por agregação e WriteBatch.
Todas as chamadas ficam registradas em `client.chamadas`, e `client.falha`
(uma exceção do google.api_core) faz qualquer operação falhar.
"""

import copy
import itertools
import operator
from datetime import datetime, timezone
from types import SimpleNamespace

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore

OPERADORES = {
    '==': operator.eq,
    '>=': operator.ge,
    '<=': operator.le,
    '>': operator.gt,
    '<': operator.lt,
    'in': lambda valor, opcoes: valor in opcoes,
}

_sequencia = itertools.count(1)


def _preparar(valor):
    if valor is firestore.SERVER_TIMESTAMP:
        return datetime.now(timezone.utc)
    if isinstance(valor, datetime) and valor.tzinfo is None:
        return valor.replace(tzinfo=timezone.utc)
    return copy.deepcopy(valor)


class FakeSnapshot:
    def __init__(self, reference, dados):
        self.reference = reference
        self.id = reference.id
        self._dados = dados

    @property
    def exists(self):
        return self._dados is not None

    def to_dict(self):
        return copy.deepcopy(self._dados) if self._dados is not None else None


class FakeDocumentReference:
    def __init__(self, client, colecao, doc_id):
        self._client = client
        self._colecao = colecao
        self.id = doc_id

    @property
    def _docs(self):
        return self._client.dados.setdefault(self._colecao, {})

    def get(self):
        self._client.registrar('get', self._colecao)
        return FakeSnapshot(self, self._docs.get(self.id))

    def set(self, dados):
        self._client.registrar('set', self._colecao)
        self._docs[self.id] = {chave: _preparar(valor) for chave, valor in dados.items()}

    def update(self, dados):
        self._client.registrar('update', self._colecao)
        if self.id not in self._docs:
            raise google_exceptions.NotFound(f"No document to update: {self._colecao}/{self.id}")
        self._docs[self.id].update({chave: _preparar(valor) for chave, valor in dados.items()})

    def delete(self):
        self._client.registrar('delete', self._colecao)
        self._docs.pop(self.id, None)


class FakeQuery:
    def __init__(self, client, colecao, filtros=(), ordem=(), limite=None):
        self._client = client
        self._colecao = colecao
        self._filtros = tuple(filtros)
        self._ordem = tuple(ordem)
        self._limite = limite

    def where(self, campo, op, valor):
        return FakeQuery(self._client, self._colecao, self._filtros + ((campo, op, valor),), self._ordem, self._limite)

    def order_by(self, campo, direction=firestore.Query.ASCENDING):
        return FakeQuery(self._client, self._colecao, self._filtros, self._ordem + ((campo, direction),), self._limite)

    def limit(self, quantidade):
        return FakeQuery(self._client, self._colecao, self._filtros, self._ordem, quantidade)

    def _resultado(self):
        docs = self._client.dados.get(self._colecao, {})
        encontrados = []
        for doc_id, dados in docs.items():
            if all(campo in dados and OPERADORES[op](dados[campo], valor) for campo, op, valor in self._filtros):
                encontrados.append((doc_id, dados))

        for campo, direcao in reversed(self._ordem):
            encontrados.sort(
                key=lambda item: (item[1].get(campo) is not None, item[1].get(campo)),
                reverse=direcao == firestore.Query.DESCENDING,
            )
        if self._limite is not None:
            encontrados = encontrados[:self._limite]
        return [
            FakeSnapshot(FakeDocumentReference(self._client, self._colecao, doc_id), dados)
            for doc_id, dados in encontrados
        ]

    def stream(self):
        self._client.registrar('stream', self._colecao)
        return iter(self._resultado())

    def count(self, alias=None):
        consulta = self

        class _Agregacao:
            def get(self_agregacao):
                consulta._client.registrar('count', consulta._colecao)
                return [[SimpleNamespace(alias=alias, value=len(consulta._resultado()))]]

        return _Agregacao()


class FakeCollection(FakeQuery):
    def __init__(self, client, colecao):
        super().__init__(client, colecao)

    def document(self, doc_id=None):
        return FakeDocumentReference(self._client, self._colecao, doc_id or f"{self._colecao}-{next(_sequencia)}")


class FakeWriteBatch:
    def __init__(self, client):
        self._client = client
        self._operacoes = []

    def delete(self, ref):
        self._operacoes.append(ref)

    def commit(self):
        self._client.registrar('commit', f"{len(self._operacoes)} escritas")
        if len(self._operacoes) > 500:
            raise google_exceptions.InvalidArgument("maximum 500 writes allowed per request")
        for ref in self._operacoes:
            ref._docs.pop(ref.id, None)
        self._client.lotes.append([(ref._colecao, ref.id) for ref in self._operacoes])


class FakeFirestore:
    def __init__(self):
        self.dados = {}
        self.chamadas = []
        self.lotes = []
        self.falha = None

    def registrar(self, operacao, alvo):
        if self.falha is not None:
            raise self.falha
        self.chamadas.append((operacao, alvo))

    def collection(self, nome):
        return FakeCollection(self, nome)

    def batch(self):
        return FakeWriteBatch(self)

    # --- Atalhos para montar cenários ---

    def semear(self, colecao, doc_id, **campos):
        self.dados.setdefault(colecao, {})[doc_id] = {chave: _preparar(valor) for chave, valor in campos.items()}
        return doc_id

    def doc(self, colecao, doc_id):
        return self.dados.get(colecao, {}).get(doc_id)

    def ids(self, colecao):
        return set(self.dados.get(colecao, {}))
