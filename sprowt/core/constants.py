"""
Constantes Globais do Sistema.
Fonte Única da Verdade para coleções, papéis e domínios de valores.
"""

# === Coleções do Firestore ===
COLECAO_TURMAS = 'turmas'
COLECAO_ALUNOS = 'alunos'
COLECAO_OBSERVACOES = 'observacoes_aluno'
COLECAO_RELATORIOS = 'relatorios'
COLECAO_PROFILES = 'profiles'

# === Papéis ===
TIPO_ADMIN = 'admin'
TIPO_PROFESSOR = 'professor'
TIPOS_PERFIL = (TIPO_ADMIN, TIPO_PROFESSOR)

# === Observações ===
TIPOS_OBSERVACAO = {
    'comportamental': 'Comportamental',
    'cognitivo': 'Cognitivo',
    'motora': 'Motora',
    'alimentacao': 'Alimentação',
    'social': 'Social',
    'comunicacao': 'Comunicação',
    'autonomia': 'Autonomia',
    'rotina': 'Rotina',
}
AVALIACAO_MIN = 1
AVALIACAO_MAX = 5
OBS_MAX_CARACTERES = 500

# === Relatórios ===
STATUS_RASCUNHO = 'rascunho'
STATUS_CONCLUIDO = 'concluido'
STATUS_RELATORIO = (STATUS_RASCUNHO, STATUS_CONCLUIDO)

# === Turmas ===
CORES_TURMA = {
    'bg-gradient-primary': 'Azul',
    'bg-gradient-secondary': 'Amarelo',
    'bg-gradient-success': 'Verde',
    'bg-gradient-accent': 'Roxo',
}
COR_PADRAO = 'bg-gradient-primary'

# === Textos de fallback das junções ===
ALUNO_DESCONHECIDO = 'Aluno Desconhecido'
SEM_TURMA = 'Sem Turma'
ALUNO_NAO_ENCONTRADO = 'Aluno não encontrado'
PROFESSOR_DESCONHECIDO = 'Professor desconhecido'

# Limite de escritas de um WriteBatch do Firestore
LIMITE_BATCH = 500
