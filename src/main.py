import logging
import sys

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from config import settings
from create_tables import crear_tablas
from database import SessionLocal

from modules.documents.models import User, UserRole
from modules.documents.exceptions import WorkflowError
from modules.projects.models import Project, ProjectMember
from modules.auth.services.auth_service import AuthService
from modules.auth.controllers.auth_controller import router as auth_router
from modules.notifications.controllers.notification_controller import router as notification_router
from modules.projects.controllers.project_controller import router as project_router
from modules.documents.controllers.document_controller import router as document_router
from modules.documents.controllers.signature_controller import router as signature_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("app")

@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup logic ---
    logger.info("Starting application")
    crear_tablas()
    if settings.SEED_DEMO_DATA:
        _crear_datos_prueba()
    yield
    # --- Shutdown logic ---
    logger.info("Application stopped")

def _crear_datos_prueba():
    """Crea usuarios de prueba y un proyecto con todos ellos como miembros."""
    with SessionLocal() as session:
        if session.query(User).count() > 0:
            logger.info("Demo data already present")
            return

        admin = User(
            name="Carlos López",
            email="carlos@empresa.com",
            password_hash=AuthService.get_password_hash("carlos123"),
            role=UserRole.ADMINISTRATOR,
            is_active=True
        )
        cliente = User(
            name="Ana García",
            email="ana@empresa.com",
            password_hash=AuthService.get_password_hash("ana123"),
            role=UserRole.CLIENT,
            is_active=True
        )
        colaborador = User(
            name="Juan Pérez",
            email="juan@empresa.com",
            password_hash=AuthService.get_password_hash("juan123"),
            role=UserRole.COLLABORATOR,
            is_active=True
        )
        proyecto = Project(name="Proyecto Demo")
        session.add_all([admin, cliente, colaborador, proyecto])
        session.flush()
        session.add_all([
            ProjectMember(project_id=proyecto.id, user_id=u.id)
            for u in (admin, cliente, colaborador)
        ])
        session.commit()

        logger.info("Demo users created: %s", ", ".join(u.email for u in (admin, cliente, colaborador)))

app = FastAPI(
    title="Gestión de Documentos de Proyectos",
    description="API para versiones de documentos y su flujo de firmas",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=[
        "Accept",
        "Accept-Language",
        "Content-Language",
        "Content-Type",
        "Authorization",
        "X-Requested-With",
        "Origin",
    ],
    expose_headers=["*"],
    max_age=86400,
)

@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content={"detail": "Error interno del servidor"})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

@app.get("/health")
def health():
    return {"status": "up"}

# Routers
app.include_router(auth_router)
app.include_router(notification_router, prefix="/notifications", tags=["notifications"])
app.include_router(project_router, prefix="/projects", tags=["projects"])
app.include_router(document_router, prefix="/documents", tags=["documents"])
app.include_router(signature_router, prefix="/documents", tags=["documents"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
