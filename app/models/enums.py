#app/models/enums.py
from __future__ import annotations
from enum import Enum


class ActorRole(str, Enum):
    ADMIN = "admin"
    MENTOR = "mentor"
    STARTUP = "startup"
    PARTICULIER = "particulier"


class SubmitterRole(str, Enum):
    # roles allowed on a form submission
    STARTUP = "startup"
    PARTICULIER = "particulier"


class ProgramStatus(str, Enum):
    DRAFT = "Draft"
    ACTIVE = "Active"
    COMPLETED = "Completed"


class ProgramType(str, Enum):
    ACCELERATION = "Acceleration"
    INCUBATION = "Incubation"
    HACKATHON = "Hackathon"
    INNOVATION_CHALLENGE = "InnovationChallenge"
    CUSTOM = "Custom"


class CandidatureKind(str, Enum):
    TEAM = "team"
    INDIVIDUAL = "individual"


class MembershipOrigin(str, Enum):
    # formation: linked when a team was formed
    # individual: startup auto-enrolled on its first advance
    # fork: startup split out of a multi-member team on advance
    FORMATION = "formation"
    INDIVIDUAL = "individual"
    FORK = "fork"


class EntityKind(str, Enum):
    # wire values of POST /phases/avancer
    TEAM = "equipe"
    STARTUP = "startup"


class CriterionType(str, Enum):
    NUMERIC = "numeric"
    STARS = "stars"
    BOOL = "bool"
    SELECT = "select"


class FillRole(str, Enum):
    TEAM = "team"
    MENTOR = "mentor"


class NotificationType(str, Enum):
    TEAM_CREATION = "team_creation"
    CANDIDATURE_REMOVED = "candidature_removed"
    PHASE_ADVANCEMENT = "phase_advancement"
    WINNER_ANNOUNCEMENT = "winner_announcement"
    PROGRAM_COMPLETED = "program_completed"
    PROGRAM_INVITATION = "program_invitation"
