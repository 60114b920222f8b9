import io

from PyPDF2 import PdfReader

from modules.documents.models import VersionStatus
from modules.documents.repositories.document_repository import DocumentRepository
from modules.notifications.models.notification import Notification

from conftest import make_pdf, make_png


def as_user(client, user):
    client.current["id"] = user.id


def upload(client, project, signers, name="Contrato de obra", pdf=None):
    files = {"file": ("contrato.pdf", pdf or make_pdf(), "application/pdf")}
    data = {
        "document_name": name,
        "project_id": str(project.id),
        "signer_ids": str([u.id for u in signers]),
    }
    resp = client.post("/documents/upload", files=files, data=data)
    assert resp.status_code == 201, resp.text
    return resp.json()


def sign(client, version_id, png=None, x_ratio="0.5", y_ratio="0.8"):
    files = {"signature": ("firma.png", png or make_png(), "image/png")}
    return client.post(f"/documents/versions/{version_id}/sign", files=files,
                       data={"x_ratio": x_ratio, "y_ratio": y_ratio})


def test_upload_pdf_aceptado(client, project, users):
    body = upload(client, project, [users["client"], users["collab"]])
    assert body["message"] == "Documento subido exitosamente"
    assert body["document_id"] > 0 and body["version_id"] > 0


def test_upload_no_pdf_rechazado(client, project):
    files = {"file": ("documento.docx", b"This is not a PDF docx",
                      "application/vnd.openxmlformats-officedocument.wordprocessingml.document")}
    resp = client.post("/documents/upload", files=files,
                       data={"document_name": "Doc", "project_id": str(project.id)})
    assert resp.status_code == 400
    assert "pdf" in resp.json()["detail"].lower()


def test_upload_sin_archivo(client, project):
    resp = client.post("/documents/upload", data={"document_name": "Doc", "project_id": str(project.id)})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No se proporcionó archivo"


def test_upload_firmantes_mal_formados(client, project):
    files = {"file": ("contrato.pdf", make_pdf(), "application/pdf")}
    resp = client.post("/documents/upload", files=files,
                       data={"document_name": "Doc", "project_id": str(project.id), "signer_ids": "3,4"})
    assert resp.status_code == 400


def test_cliente_no_puede_subir(client, project, users):
    as_user(client, users["client"])
    files = {"file": ("contrato.pdf", make_pdf(), "application/pdf")}
    resp = client.post("/documents/upload", files=files,
                       data={"document_name": "Doc", "project_id": str(project.id)})
    assert resp.status_code == 403


def test_upload_nueva_version(client, project, users):
    body = upload(client, project, [users["client"]])
    files = {"file": ("contrato_v2.pdf", make_pdf(text="Versión 2"), "application/pdf")}
    resp = client.post("/documents/upload-version", files=files, data={
        "document_id": str(body["document_id"]),
        "signer_ids": str([users["client"].id]),
        "change_description": "Corrige cláusula 4",
    })
    assert resp.status_code == 201, resp.text

    history = client.get(f"/documents/{body['document_id']}/versions").json()
    assert [v["version_number"] for v in history] == [2, 1]
    assert history[0]["change_description"] == "Corrige cláusula 4"
    assert history[0]["uploader_name"] == users["admin"].name


def test_historial_documento_inexistente(client, users):
    assert client.get("/documents/999/versions").status_code == 404


def test_firma_completa_y_lista_maestra(client, project, users):
    body = upload(client, project, [users["client"], users["collab"]])
    version_id = body["version_id"]

    as_user(client, users["client"])
    resp = sign(client, version_id, x_ratio="0.2")
    assert resp.status_code == 200, resp.text
    assert resp.json() == {"message": "Documento firmado exitosamente", "version_id": version_id, "completed": False}

    as_user(client, users["collab"])
    resp = sign(client, version_id, png=make_png((0, 0, 255, 255)), x_ratio="0.7")
    assert resp.json()["completed"] is True

    master = client.get(f"/documents/projects/{project.id}/master-list").json()
    assert [m["version_id"] for m in master] == [version_id]
    assert master[0]["document_name"] == "Contrato de obra"

    signers = client.get(f"/documents/versions/{version_id}/signers").json()
    assert [s["name"] for s in signers] == sorted(s["name"] for s in signers)
    assert all(s["signed"] for s in signers)
    assert not any(s["pending"] for s in signers)


def test_firmantes_pendientes_y_rechazo(client, project, users):
    body = upload(client, project, [users["client"], users["collab"], users["collab2"]])
    version_id = body["version_id"]

    as_user(client, users["client"])
    sign(client, version_id)
    as_user(client, users["collab"])
    client.post(f"/documents/versions/{version_id}/reject", json={"comment": "Plano desactualizado"})

    roster = {s["user_id"]: s for s in client.get(f"/documents/versions/{version_id}/signers").json()}
    assert roster[users["client"].id]["pending"] is False
    assert roster[users["collab"].id]["pending"] is False
    assert roster[users["collab"].id]["rejection_comment"] == "Plano desactualizado"
    assert roster[users["collab2"].id]["pending"] is True


def test_firma_sin_imagen(client, project, users):
    body = upload(client, project, [users["client"]])
    as_user(client, users["client"])
    resp = client.post(f"/documents/versions/{body['version_id']}/sign", data={"x_ratio": "0.5"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No se proporcionó firma"


def test_firma_con_archivo_que_no_es_imagen(client, project, users):
    body = upload(client, project, [users["client"]])
    as_user(client, users["client"])
    files = {"signature": ("firma.png", b"no soy una imagen", "image/png")}
    resp = client.post(f"/documents/versions/{body['version_id']}/sign", files=files)
    assert resp.status_code == 400


def test_firma_ratio_fuera_de_rango(client, project, users):
    body = upload(client, project, [users["client"]])
    as_user(client, users["client"])
    assert sign(client, body["version_id"], x_ratio="1.5").status_code == 400


def test_firma_de_no_firmante(client, project, users):
    body = upload(client, project, [users["client"]])
    as_user(client, users["collab"])
    resp = sign(client, body["version_id"])
    assert resp.status_code == 403
    assert resp.json()["detail"] == "No tiene permisos para firmar este documento"


def test_firma_version_inexistente(client, users):
    as_user(client, users["client"])
    assert sign(client, 999).status_code == 404


def test_rechazo(client, session, project, users):
    body = upload(client, project, [users["client"], users["collab"]])
    version_id = body["version_id"]

    as_user(client, users["client"])
    resp = client.post(f"/documents/versions/{version_id}/reject", json={"comment": "Faltan firmas del anexo"})
    assert resp.status_code == 200
    assert resp.json() == {"message": "Documento rechazado", "version_id": version_id}
    assert DocumentRepository(session).get_version_info(version_id).status == VersionStatus.REJECTED

    as_user(client, users["collab"])
    assert client.post(f"/documents/versions/{version_id}/reject", json={"comment": "Otro"}).status_code == 403
    assert sign(client, version_id).status_code == 403

    notes = session.query(Notification).filter(Notification.user_id == users["admin"].id).all()
    assert any("Faltan firmas del anexo" in n.message for n in notes)


def test_rechazo_sin_comentario(client, project, users):
    body = upload(client, project, [users["client"]])
    as_user(client, users["client"])
    resp = client.post(f"/documents/versions/{body['version_id']}/reject", json={"comment": ""})
    assert resp.status_code == 422


def test_documentos_del_proyecto_filtrados_para_colaborador(client, project, users):
    upload(client, project, [users["client"]], name="Solo cliente")
    upload(client, project, [users["collab"]], name="Para Juan")

    all_docs = client.get(f"/documents/projects/{project.id}").json()
    assert {d["name"] for d in all_docs} == {"Solo cliente", "Para Juan"}

    as_user(client, users["collab"])
    docs = client.get(f"/documents/projects/{project.id}").json()
    assert [d["name"] for d in docs] == ["Para Juan"]
    assert docs[0]["can_sign"] is True
    assert docs[0]["latest_version"]["total_signers"] == 1


def test_documentos_de_proyecto_inexistente(client, users):
    assert client.get("/documents/projects/999").status_code == 404


def test_descarga_del_pdf_firmado(client, project, users):
    body = upload(client, project, [users["client"]])
    as_user(client, users["client"])
    sign(client, body["version_id"])

    history = client.get(f"/documents/{body['document_id']}/versions").json()
    resp = client.get(history[0]["file_path"])
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert len(PdfReader(io.BytesIO(resp.content)).pages) == 1


def test_descarga_fuera_del_directorio(client, users):
    assert client.get("/documents/files/..%2F..%2Fsecret.pdf").status_code == 404
    assert client.get("/documents/files/no_existe/archivo.pdf").status_code == 404


def test_usuarios_del_proyecto(client, project, users):
    resp = client.get(f"/projects/{project.id}/users")
    assert resp.status_code == 200
    ids = {u["user_id"] for u in resp.json()}
    assert ids == {users[k].id for k in ("admin", "client", "collab", "collab2")}
    assert client.get("/projects/999/users").status_code == 404


def test_notificaciones_del_usuario(client, project, users):
    upload(client, project, [users["client"]])
    as_user(client, users["client"])
    notes = client.get("/notifications/me").json()
    assert len(notes) == 1
    assert notes[0]["type"] == "NEW_DOCUMENT"
    assert notes[0]["read"] is False

    resp = client.patch(f"/notifications/{notes[0]['id']}/read")
    assert resp.status_code == 200
    assert resp.json()["read"] is True

    as_user(client, users["collab"])
    resp = client.patch(f"/notifications/{notes[0]['id']}/read")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Notificación no encontrada"
    assert client.patch("/notifications/9999/read").status_code == 404


def test_notificaciones_no_leidas(client, project, users):
    upload(client, project, [users["client"]], name="Uno")
    upload(client, project, [users["client"]], name="Dos")
    as_user(client, users["client"])
    first = client.get("/notifications/me").json()[0]
    client.patch(f"/notifications/{first['id']}/read")

    unread = client.get("/notifications/me", params={"only_unread": "true"}).json()
    assert len(unread) == 1
    assert unread[0]["id"] != first["id"]
