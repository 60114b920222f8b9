import io
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_DEMO_DATA"] = "false"

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from PIL import Image
from reportlab.pdfgen import canvas
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from create_tables import crear_tablas
from modules.documents.models import User, UserRole
from modules.documents.services.document_service import IncomingFile
from modules.documents.services.signature_workflow import SignatureWorkflowService
from modules.documents.services.storage import LocalFileStorage
from modules.documents.services.version_locks import VersionLockRegistry
from modules.notifications.repositories.notification_repository import NotificationRepository
from modules.notifications.services.notification_service import NotificationService
from modules.projects.models import Project, ProjectMember
from modules.projects.services.project_directory import ProjectDirectory

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def clean_db():
    crear_tablas(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_user(session, name, role, email=None):
    user = User(
        name=name,
        email=email or f"{name.lower().replace(' ', '.')}@empresa.com",
        password_hash="x",
        role=role,
        is_active=True,
    )
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def users(session):
    """Miembros del proyecto de pruebas más un usuario ajeno."""
    return {
        "admin": create_user(session, "Carlos Lopez", UserRole.ADMINISTRATOR),
        "client": create_user(session, "Ana Garcia", UserRole.CLIENT),
        "collab": create_user(session, "Juan Perez", UserRole.COLLABORATOR),
        "collab2": create_user(session, "Marta Diaz", UserRole.COLLABORATOR),
        "outsider": create_user(session, "Pedro Ruiz", UserRole.COLLABORATOR),
    }


@pytest.fixture
def project(session, users):
    proyecto = Project(name="Obra Central")
    session.add(proyecto)
    session.flush()
    for key in ("admin", "client", "collab", "collab2"):
        session.add(ProjectMember(project_id=proyecto.id, user_id=users[key].id))
    session.commit()
    return proyecto


def make_pdf(pages=1, text="PDF de prueba"):
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=(612, 792))
    for i in range(pages):
        c.drawString(100, 750, f"{text} - página {i + 1}")
        c.showPage()
    c.save()
    return buffer.getvalue()


def make_png(color=(0, 0, 0, 255), size=(120, 60)):
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def pdf_file(contents=None, filename="contrato.pdf", content_type="application/pdf"):
    return IncomingFile(filename=filename, content_type=content_type,
                        contents=make_pdf() if contents is None else contents)


@pytest.fixture
def example_pdf():
    return make_pdf()


@pytest.fixture
def signature_png():
    return make_png()


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(root=str(tmp_path / "uploads"), url_prefix="/documents/files")


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, notification_type, recipient_ids, params, action_link=None):
        self.sent.append((notification_type, list(recipient_ids), dict(params), action_link))
        return []

    def of_type(self, notification_type):
        return [s for s in self.sent if s[0] == notification_type]


class BrokenNotifier:
    def notify(self, notification_type, recipient_ids, params, action_link=None):
        raise RuntimeError("notification backend down")


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def workflow(session, storage, notifier):
    return SignatureWorkflowService(
        session,
        storage=storage,
        notifier=notifier,
        directory=ProjectDirectory(session),
        locks=VersionLockRegistry(),
    )


@pytest.fixture
def persistent_workflow(session, storage):
    """Flujo con notificaciones guardadas en base de datos."""
    return SignatureWorkflowService(
        session,
        storage=storage,
        notifier=NotificationService(NotificationRepository(session)),
        directory=ProjectDirectory(session),
        locks=VersionLockRegistry(),
    )


@pytest.fixture
def client(storage, users):
    from main import app
    from modules.auth.dependencies import get_current_user
    from modules.documents.dependencies import get_file_storage

    current = {"id": users["admin"].id}

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    def override_current_user(db: Session = Depends(get_db)):
        return db.get(User, current["id"])

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_current_user
    app.dependency_overrides[get_file_storage] = lambda: storage

    test_client = TestClient(app)
    test_client.current = current
    yield test_client
    app.dependency_overrides.clear()
