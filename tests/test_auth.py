from datetime import timedelta

from modules.auth.dependencies import get_current_user
from modules.auth.services.auth_service import AuthService


def test_token_contiene_el_id_del_usuario(session, users):
    token = AuthService.create_access_token(users["client"])
    assert AuthService.verify_token(token) == users["client"].id
    assert AuthService.get_current_user(session, token).id == users["client"].id


def test_token_expirado_o_alterado(session, users):
    expired = AuthService.create_access_token(users["client"], expires_delta=timedelta(seconds=-1))
    assert AuthService.verify_token(expired) is None
    assert AuthService.verify_token("no.es.un.token") is None


def test_usuario_inactivo_no_se_autentica(session, users):
    token = AuthService.create_access_token(users["collab"])
    users["collab"].is_active = False
    session.commit()
    assert AuthService.get_current_user(session, token) is None


def test_me_con_token_real(client, users):
    from main import app

    del app.dependency_overrides[get_current_user]
    token = AuthService.create_access_token(users["client"])

    resp = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["email"] == users["client"].email
    assert resp.json()["role"] == "CLIENT"

    assert client.get("/auth/me", headers={"Authorization": "Bearer basura"}).status_code == 401
