# app/models/__init__.py
# Importing every model registers its table on Base.metadata
# (used by Alembic autogenerate and by the test schema setup).
from app.models.user import User, StartupProfile
from app.models.program import Program, ProgramMentor
from app.models.submission import Form, Submission, ProgramSubmission
from app.models.phase import Phase
from app.models.candidature import Candidature, CandidatureMember
from app.models.candidature_phase import CandidaturePhase
from app.models.criterion import Criterion
from app.models.response import Response
from app.models.phase_final_score import PhaseFinalScore
from app.models.notification import Notification
from app.models.audit_log import AuditLog

__all__ = [
    "User",
    "StartupProfile",
    "Program",
    "ProgramMentor",
    "Form",
    "Submission",
    "ProgramSubmission",
    "Phase",
    "Candidature",
    "CandidatureMember",
    "CandidaturePhase",
    "Criterion",
    "Response",
    "PhaseFinalScore",
    "Notification",
    "AuditLog",
]
