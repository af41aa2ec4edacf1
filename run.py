"""
Ponto de Entrada da Aplicação (Runner)

Este script importa a "Application Factory" (create_app) do pacote 'sprowt'
e inicia o servidor de desenvolvimento do Flask.

Para executar o servidor:
(Com o ambiente virtual .venv ativo)
$ python run.py
"""

from sprowt import create_app

# Cria a instância da aplicação usando a factory
app = create_app()

if __name__ == "__main__":
    # debug acompanha FLASK_DEBUG do .env
    app.run(host='0.0.0.0', port=5000, debug=app.config['DEBUG'])
