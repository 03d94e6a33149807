from fastapi import APIRouter

from app.api.v1.health import router as health_router
from app.api.v1.programmes import router as programmes_router
from app.api.v1.candidatures import router as candidatures_router
from app.api.v1.phases import router as phases_router
from app.api.v1.criteres import router as criteres_router
from app.api.v1.note import router as note_router
from app.api.v1.note_phase import router as note_phase_router


v1_router = APIRouter()

# ------------------------------------------------------------------
# SYSTEM / CORE
# ------------------------------------------------------------------
v1_router.include_router(health_router, tags=["health"])

# ------------------------------------------------------------------
# PROGRAMS / CANDIDATURES / PHASES
# ------------------------------------------------------------------
v1_router.include_router(programmes_router, tags=["programmes"])
v1_router.include_router(candidatures_router, tags=["candidatures"])
v1_router.include_router(phases_router, tags=["phases"])

# ------------------------------------------------------------------
# EVALUATION
# ------------------------------------------------------------------
v1_router.include_router(criteres_router, tags=["criteres"])
v1_router.include_router(note_router, tags=["note"])
v1_router.include_router(note_phase_router, tags=["note-phase"])
