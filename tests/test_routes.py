from conftest import ConfigTeste
from sprowt import create_app
from sprowt.core.constants import COLECAO_OBSERVACOES, COLECAO_PROFILES, COLECAO_TURMAS


def test_health_check(client):
    """Teste da rota de health check."""
    response = client.get('/health')
    assert response.status_code == 200
    assert b"Servidor Sprowt no ar!" in response.data


def test_404_em_json(client):
    response = client.get('/rota-que-nao-existe')
    assert response.status_code == 404
    assert 'erro' in response.get_json()


# === Autenticação ===

def test_sessao_anonima(client):
    dados = client.get('/auth/sessao').get_json()
    assert dados['autenticado'] is False
    assert dados['csrfToken']


def test_rotas_de_dados_exigem_login(client):
    response = client.get('/turmas')
    assert response.status_code == 401
    assert response.get_json()['tipo'] == 'NotAuthenticated'


def test_login_com_senha_errada(client, auth_fake):
    response = client.post('/auth/login', json={'email': 'ana@escola.com', 'password': 'errada'})
    assert response.status_code == 401
    assert response.get_json()['erro'] == "E-mail ou senha inválidos."


def test_login_sem_campos(client):
    response = client.post('/auth/login', json={'email': 'ana@escola.com'})
    assert response.status_code == 400
    assert 'password' in response.get_json()['campos']


def test_login_e_logout(client, login):
    dados = login('ana@escola.com').get_json()
    assert dados['autenticado'] is True
    assert dados['profile'] == {'id': 'prof-a', 'nome': 'Ana', 'tipo': 'professor'}
    assert client.get('/turmas').status_code == 200

    client.post('/auth/logout')
    assert client.get('/turmas').status_code == 401


def test_atualizar_nome_do_perfil(client, login, fs):
    login('ana@escola.com')
    response = client.patch('/auth/perfil', json={'nome': 'Ana Maria'})

    assert response.status_code == 200
    assert response.get_json()['user']['nome'] == 'Ana Maria'
    assert fs.doc(COLECAO_PROFILES, 'prof-a')['nome'] == 'Ana Maria'


def test_cadastro_cria_professor(client, fs):
    response = client.post('/auth/signup', json={
        'nome': 'Carla Souza', 'email': 'carla@escola.com', 'password': 'segredo123',
    })
    assert response.status_code == 201
    uid = response.get_json()['user']['id']
    assert fs.doc(COLECAO_PROFILES, uid)['tipo'] == 'professor'


def test_cadastro_com_email_repetido(client):
    response = client.post('/auth/signup', json={
        'nome': 'Outra Ana', 'email': 'ana@escola.com', 'password': 'segredo123',
    })
    assert response.status_code == 409


def test_csrf_ativo_recusa_post_sem_token(fs, auth_fake, servico_ia):
    class ComCsrf(ConfigTeste):
        WTF_CSRF_ENABLED = True

    client = create_app(ComCsrf, firestore_client=fs, auth_client=auth_fake, servico_ia=servico_ia).test_client()
    response = client.post('/auth/login', json={'email': 'ana@escola.com', 'password': 'segredo123'})
    assert response.status_code == 400


# === Turmas ===

def test_listar_turmas_do_professor(client, login, cenario):
    login('ana@escola.com')
    turmas = client.get('/turmas').get_json()
    assert [t['id'] for t in turmas] == [cenario.turma]
    assert turmas[0]['alunosCount'] == 1


def test_criar_turma_invalida(client, login, fs):
    login('ana@escola.com')
    response = client.post('/turmas', json={'nome': '', 'faixa_etaria': '3 anos', 'cor': 'roxo'})
    assert response.status_code == 400
    assert fs.ids(COLECAO_TURMAS) == set()


def test_texto_com_tipo_errado_e_recusado(client, login, fs):
    login('ana@escola.com')
    response = client.post('/turmas', json={'nome': 123, 'faixa_etaria': '3 anos'})
    assert response.status_code == 400
    assert response.get_json()['tipo'] == 'InvalidInput'
    assert fs.ids(COLECAO_TURMAS) == set()

    assert client.post('/turmas', json=['nome', 'X']).status_code == 400
    assert client.post('/auth/login', json={'email': 42, 'password': 'x'}).status_code == 400


def test_atualizar_turma_recusa_cor_desconhecida(client, login, cenario, fs):
    login('ana@escola.com')
    url = f'/turmas/{cenario.turma}'
    assert client.patch(url, json={'cor': 'qualquer-coisa'}).status_code == 400
    assert fs.doc(COLECAO_TURMAS, cenario.turma)['cor'] == 'bg-gradient-primary'

    response = client.patch(url, json={'cor': 'bg-gradient-success'})
    assert response.status_code == 200
    assert response.get_json()['cor'] == 'bg-gradient-success'


def test_professor_nao_cria_para_outro(client, login, fs):
    login('ana@escola.com')
    response = client.post('/turmas', json={'nome': 'X', 'faixa_etaria': '3 anos', 'professor_id': 'prof-b'})
    assert response.status_code == 403
    assert fs.ids(COLECAO_TURMAS) == set()


def test_turma_de_outro_professor_e_404(client, login, cenario):
    login('bruno@escola.com')
    assert client.get(f'/turmas/{cenario.turma}').status_code == 404
    assert client.delete(f'/turmas/{cenario.turma}', json={'confirmacoes': []}).status_code == 404


def test_excluir_turma_em_duas_etapas(client, login, cenario, fs):
    login('ana@escola.com')
    url = f'/turmas/{cenario.turma}'

    primeira = client.delete(url, json={})
    assert primeira.status_code == 409
    assert primeira.get_json()['confirmacao']['title'] == "Deletar Turma"
    assert "1 alunos" in primeira.get_json()['confirmacao']['message']

    segunda = client.delete(url, json={'confirmacoes': ["Deletar Turma"]})
    assert segunda.status_code == 409
    assert segunda.get_json()['confirmacao']['confirmText'] == "SIM, DELETAR TUDO"
    assert cenario.turma in fs.ids(COLECAO_TURMAS)

    final = client.delete(url, json={'confirmacoes': ["Deletar Turma", "⚠️ CONFIRMAÇÃO FINAL"]})
    assert final.status_code == 200
    dados = final.get_json()
    assert dados['removedCounts'] == {'alunos': 1, 'observacoes': 1, 'relatorios': 1}
    assert dados['ownerName'] == 'Ana'
    assert dados['aviso']['title'] == "✅ Turma deletada com sucesso!"
    assert cenario.turma not in fs.ids(COLECAO_TURMAS)


def test_estatisticas_da_turma(client, login, cenario):
    login('ana@escola.com')
    dados = client.get(f'/turmas/{cenario.turma}/estatisticas').get_json()
    assert dados['totalAlunos'] == 1
    assert dados['mediaAvaliacao'] == 4.0


# === Alunos ===

def test_criar_aluno_devolve_colecoes_atualizadas(client, login, cenario):
    login('ana@escola.com')
    response = client.post('/alunos', json={
        'nome': 'Nina', 'turma_id': cenario.turma, 'data_nascimento': '2021-01-20', 'responsavel': 'Léo',
    })
    assert response.status_code == 201
    dados = response.get_json()
    assert dados['aluno']['turma'] == 'Maternal A'
    assert dados['turmas'][0]['alunosCount'] == 2
    assert {a['nome'] for a in dados['alunos']} == {'Lia', 'Nina'}


def test_criar_aluno_com_data_invalida(client, login, cenario):
    login('ana@escola.com')
    response = client.post('/alunos', json={
        'nome': 'Nina', 'turma_id': cenario.turma, 'data_nascimento': '20/01/2021', 'responsavel': 'Léo',
    })
    assert response.status_code == 400


def test_atualizar_aluno_parcialmente(client, login, cenario):
    login('ana@escola.com')
    response = client.patch(f'/alunos/{cenario.aluno}', json={'telefone': '11 90000-0000'})
    assert response.status_code == 200
    assert response.get_json()['aluno']['telefone'] == '11 90000-0000'
    assert response.get_json()['aluno']['responsavel'] == 'Marta'

    assert client.patch(f'/alunos/{cenario.aluno}', json={'telefone': '9' * 21}).status_code == 400


def test_excluir_aluno(client, login, cenario):
    login('ana@escola.com')
    pendente = client.delete(f'/alunos/{cenario.aluno}')
    assert pendente.get_json()['confirmacao']['title'] == "Deletar Aluno"

    response = client.delete(f'/alunos/{cenario.aluno}', json={'confirmacoes': ["Deletar Aluno"]})
    assert response.status_code == 200
    dados = response.get_json()
    assert dados['removedCounts']['observacoes'] == 1
    assert dados['alunos'] == []
    assert dados['turmas'][0]['alunosCount'] == 0


def test_progresso_do_aluno(client, login, cenario):
    login('ana@escola.com')
    dados = client.get(f'/alunos/{cenario.aluno}/progresso').get_json()
    assert dados['mediaGeral'] == 4
    assert dados['porTipo'][0]['tipoObs'] == 'motora'


# === Observações ===

def test_avaliacao_fora_da_faixa_e_recusada(client, login, cenario, fs):
    login('ana@escola.com')
    antes = set(fs.ids(COLECAO_OBSERVACOES))
    response = client.post('/observacoes', json={
        'id_aluno': cenario.aluno, 'tipo_obs': 'social', 'range_avaliacao': 6, 'obs': 'Teste',
    })
    assert response.status_code == 400
    assert fs.ids(COLECAO_OBSERVACOES) == antes

    response = client.patch(f'/observacoes/{cenario.observacao}', json={'range_avaliacao': 0})
    assert response.status_code == 400


def test_avaliacao_nao_inteira_e_recusada(client, login, cenario, fs):
    login('ana@escola.com')
    antes = set(fs.ids(COLECAO_OBSERVACOES))
    for nota in (2.5, True, 4.9, '3'):
        response = client.post('/observacoes', json={
            'id_aluno': cenario.aluno, 'tipo_obs': 'social', 'range_avaliacao': nota, 'obs': 'Teste',
        })
        assert response.status_code == 400, nota
    assert fs.ids(COLECAO_OBSERVACOES) == antes


def test_criar_e_filtrar_observacoes(client, login, cenario):
    login('ana@escola.com')
    response = client.post('/observacoes', json={
        'id_aluno': cenario.aluno, 'tipo_obs': 'social', 'range_avaliacao': 5,
        'obs': 'Dividiu os brinquedos', 'data_registro': '2024-03-05T10:30',
    })
    assert response.status_code == 201
    assert response.get_json()['alunoNome'] == 'Lia'

    por_tipo = client.get('/observacoes?tipo=social').get_json()
    assert [o['obs'] for o in por_tipo] == ['Dividiu os brinquedos']

    por_texto = client.get('/observacoes?q=ESCADAS').get_json()
    assert [o['tipoObs'] for o in por_texto] == ['motora']

    periodo = client.get(f'/observacoes?aluno={cenario.aluno}&inicio=2024-03-01&fim=2024-03-31').get_json()
    assert [o['obs'] for o in periodo] == ['Dividiu os brinquedos']


def test_periodo_com_data_invalida(client, login, cenario):
    login('ana@escola.com')
    assert client.get('/observacoes?inicio=ontem').status_code == 400


# === Relatórios e IA ===

def test_gerar_relatorio_com_ia(client, login, cenario, servico_ia):
    login('ana@escola.com')
    response = client.post('/relatorios/gerar-ia', json={'aluno_id': cenario.aluno, 'periodo': '2024.2'})

    assert response.status_code == 201
    dados = response.get_json()
    assert dados['geradoPorIA'] is True
    assert dados['conteudo'] == 'Texto gerado pela IA.'
    assert dados['status'] == 'rascunho'
    assert dados['alunoNome'] == 'Lia'

    _, corpo, headers = servico_ia.invoke.call_args.args
    assert headers == {'Authorization': 'Bearer token-prof-a'}
    assert corpo['alunoNome'] == 'Lia'
    assert 'Sobe escadas sozinha' in corpo['contexto']


def test_falha_da_ia_nao_grava_relatorio(client, login, cenario, servico_ia):
    login('ana@escola.com')
    servico_ia.invoke.return_value = {'success': False, 'error': 'Quota exceeded'}
    antes = client.get('/relatorios').get_json()

    response = client.post('/relatorios/gerar-ia', json={'aluno_id': cenario.aluno, 'periodo': '2024.2'})
    assert response.status_code == 502
    assert response.get_json()['tipo'] == 'AIServiceError'
    assert client.get('/relatorios').get_json() == antes


def test_crud_de_relatorio(client, login, cenario):
    login('ana@escola.com')
    criado = client.post('/relatorios', json={
        'aluno_id': cenario.aluno, 'titulo': '2º Bimestre', 'periodo': '2024.2', 'conteudo': 'Texto',
    }).get_json()
    assert criado['turma'] == 'Maternal A'

    atualizado = client.patch(f"/relatorios/{criado['id']}", json={'status': 'concluido'}).get_json()
    assert atualizado['status'] == 'concluido'

    concluidos = client.get('/relatorios?status=concluido').get_json()
    assert [r['id'] for r in concluidos] == [criado['id']]

    excluido = client.delete(f"/relatorios/{criado['id']}", json={'confirmacoes': ["Deletar Relatório"]})
    assert excluido.status_code == 200


def test_solicitar_ia(client, login, cenario, servico_ia):
    login('ana@escola.com')
    response = client.post('/ia/solicitar', json={
        'prompt': 'Sugira atividades de motricidade', 'tipo': 'sugestoes_atividades', 'aluno_id': cenario.aluno,
    })
    assert response.status_code == 200
    assert response.get_json() == {
        'resposta': 'Texto gerado pela IA.', 'tipo': 'sugestoes_atividades', 'alunoNome': 'Lia',
    }


def test_solicitar_ia_com_tipo_invalido(client, login, servico_ia):
    login('ana@escola.com')
    response = client.post('/ia/solicitar', json={'prompt': 'Oi', 'tipo': 'horoscopo'})
    assert response.status_code == 400
    servico_ia.invoke.assert_not_called()


# === Painel ===

def test_painel(client, login, cenario):
    login('ana@escola.com')
    dados = client.get('/painel').get_json()
    assert dados['loading'] is False
    assert dados['estatisticas']['alunos'] == 1
    assert dados['alunos'][0]['turma'] == 'Maternal A'


def test_admin_ve_aluno_de_outro_professor(client, login, cenario):
    login('diretora@escola.com')
    dados = client.get(f'/alunos/{cenario.aluno_b}').get_json()
    assert dados['nome'] == 'Caio'
    assert dados['turma'] == 'Jardim B'
