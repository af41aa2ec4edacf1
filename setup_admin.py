"""
Script Utilitário: setup_admin.py
Use este script para promover um professor a Administrador manualmente.
"""

from sprowt import create_app
from sprowt.core.constants import COLECAO_PROFILES, TIPO_ADMIN
from sprowt.core.database import get_client


def localizar_profile(db, identificador):
    """Aceita o uid do Firebase ou o e-mail usado no cadastro."""
    doc = db.collection(COLECAO_PROFILES).document(identificador).get()
    if doc.exists:
        return doc
    encontrados = list(db.collection(COLECAO_PROFILES).where('email', '==', identificador).limit(1).stream())
    return encontrados[0] if encontrados else None


def promover_usuario(app, identificador):
    print(f"--- Promovendo usuário: {identificador} ---")

    with app.app_context():
        db = get_client()
        doc = localizar_profile(db, identificador)

        if doc is None:
            print(f"❌ ERRO: Nenhum perfil encontrado para '{identificador}'.")
            print("DICA: O usuário precisa se cadastrar na aplicação antes de ser promovido.")
            return False

        doc.reference.update({'tipo': TIPO_ADMIN})

        print(f"✅ SUCESSO! O usuário '{identificador}' agora é ADMIN.")
        print("⚠️  IMPORTANTE: o novo papel vale a partir da próxima requisição do usuário.")
        return True


if __name__ == "__main__":
    alvo = input("Digite o e-mail ou uid do usuário que será Admin: ").strip()
    promover_usuario(create_app(), alvo)
