"""accelerator core schema

Revision ID: 0001_accelerator_core
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_accelerator_core"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column("id", sa.Integer, primary_key=True, autoincrement=True)


def _ts(name, nullable=False):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade():
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(256), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("first_name", sa.String(128), nullable=True),
        sa.Column("last_name", sa.String(128), nullable=True),
        _ts("created_at"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "startup_profiles",
        _id(),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("company_name", sa.String(256), nullable=True),
        sa.UniqueConstraint("user_id", name="uq_startup_profiles_user"),
    )

    op.create_table(
        "programs",
        _id(),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'Draft'")),
        sa.Column("is_template", sa.Boolean, nullable=False, server_default=sa.false()),
        _ts("created_at"),
        _ts("updated_at"),
        sa.CheckConstraint("start_date <= end_date", name="ck_programs_dates"),
    )
    op.create_index("ix_programs_status", "programs", ["status"])

    op.create_table(
        "program_mentors",
        _id(),
        sa.Column("program_id", sa.Integer, sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("mentor_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        _ts("added_at"),
        sa.UniqueConstraint("program_id", "mentor_id", name="uq_program_mentor"),
    )
    op.create_index("ix_program_mentors_mentor", "program_mentors", ["mentor_id"])

    op.create_table(
        "forms",
        _id(),
        sa.Column("program_id", sa.Integer, sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
    )
    op.create_index("ix_forms_program", "forms", ["program_id"])

    op.create_table(
        "submissions",
        _id(),
        sa.Column("form_id", sa.Integer, sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        _ts("created_at"),
        sa.UniqueConstraint("form_id", "user_id", name="uq_submission_form_user"),
    )
    op.create_index("ix_submissions_user", "submissions", ["user_id"])

    op.create_table(
        "program_submissions",
        _id(),
        sa.Column("program_id", sa.Integer, sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("submission_id", sa.Integer, sa.ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False),
        _ts("added_at"),
        sa.UniqueConstraint("program_id", "submission_id", name="uq_program_submission"),
    )

    op.create_table(
        "candidatures",
        _id(),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("program_id", sa.Integer, sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("kind", sa.String(16), nullable=False),
        _ts("created_at"),
    )
    op.create_index("ix_candidatures_program", "candidatures", ["program_id"])

    op.create_table(
        "phases",
        _id(),
        sa.Column("program_id", sa.Integer, sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column(
            "winner_candidature_id",
            sa.Integer,
            sa.ForeignKey("candidatures.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.CheckConstraint("start_date < end_date", name="ck_phases_dates"),
    )
    op.create_index("ix_phases_program_end", "phases", ["program_id", "end_date"])

    op.create_table(
        "candidature_members",
        _id(),
        sa.Column("candidature_id", sa.Integer, sa.ForeignKey("candidatures.id", ondelete="CASCADE"), nullable=False),
        sa.Column("submission_id", sa.Integer, sa.ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("origin", sa.String(16), nullable=False),
        _ts("created_at"),
        sa.UniqueConstraint("candidature_id", "submission_id", name="uq_candidature_member"),
    )
    # a submission joins at most one non-fork candidature
    op.create_index(
        "uq_candidature_members_primary_submission",
        "candidature_members",
        ["submission_id"],
        unique=True,
        postgresql_where=sa.text("origin <> 'fork'"),
        sqlite_where=sa.text("origin <> 'fork'"),
    )
    op.create_index("ix_candidature_members_submission", "candidature_members", ["submission_id"])

    op.create_table(
        "candidature_phases",
        _id(),
        sa.Column("candidature_id", sa.Integer, sa.ForeignKey("candidatures.id", ondelete="CASCADE"), nullable=False),
        sa.Column("phase_id", sa.Integer, sa.ForeignKey("phases.id", ondelete="CASCADE"), nullable=False),
        _ts("passed_at"),
        sa.UniqueConstraint("candidature_id", "phase_id", name="uq_candidature_phase"),
    )
    op.create_index("ix_candidature_phases_passed", "candidature_phases", ["candidature_id", "passed_at"])

    op.create_table(
        "criteria",
        _id(),
        sa.Column("phase_id", sa.Integer, sa.ForeignKey("phases.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("weight", sa.Float, nullable=False),
        sa.Column("visible_to_mentors", sa.Boolean, nullable=False),
        sa.Column("visible_to_teams", sa.Boolean, nullable=False),
        sa.Column("fill_role", sa.String(16), nullable=False),
        sa.Column("requires_validation", sa.Boolean, nullable=False),
        sa.CheckConstraint("weight > 0", name="ck_criteria_weight_positive"),
    )
    op.create_index("ix_criteria_phase", "criteria", ["phase_id"])

    op.create_table(
        "responses",
        _id(),
        sa.Column("candidature_id", sa.Integer, sa.ForeignKey("candidatures.id", ondelete="CASCADE"), nullable=False),
        sa.Column("criterion_id", sa.Integer, sa.ForeignKey("criteria.id", ondelete="CASCADE"), nullable=False),
        sa.Column("value", sa.String(512), nullable=False),
        sa.Column("filled_by_mentor_id", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("validated", sa.Boolean, nullable=False),
        sa.Column("validated_by_mentor_id", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        _ts("validated_at", nullable=True),
        _ts("created_at"),
        sa.UniqueConstraint("candidature_id", "criterion_id", name="uq_response_candidature_criterion"),
    )
    op.create_index("ix_responses_criterion", "responses", ["criterion_id"])

    op.create_table(
        "phase_final_scores",
        _id(),
        sa.Column("phase_id", sa.Integer, sa.ForeignKey("phases.id", ondelete="CASCADE"), nullable=False),
        sa.Column("candidature_id", sa.Integer, sa.ForeignKey("candidatures.id", ondelete="CASCADE"), nullable=False),
        sa.Column("mentor_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("score", sa.Float, nullable=False),
        _ts("created_at"),
        sa.UniqueConstraint("phase_id", "candidature_id", name="uq_phase_final_score"),
    )

    op.create_table(
        "notifications",
        _id(),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_role", sa.String(32), nullable=False),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("related_id", sa.Integer, nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False),
        _ts("created_at"),
    )
    op.create_index("ix_notifications_user_read", "notifications", ["user_id", "is_read"])

    op.create_table(
        "audit_logs",
        _id(),
        sa.Column("action", sa.String(128), nullable=False),
        sa.Column("actor_user_id", sa.Integer, nullable=True),
        sa.Column("program_id", sa.Integer, nullable=True),
        sa.Column("request_id", sa.String(128), nullable=True),
        sa.Column("details_json", sa.JSON, nullable=False),
        _ts("created_at"),
    )
    op.create_index("ix_audit_program", "audit_logs", ["program_id"])
    op.create_index("ix_audit_created_at", "audit_logs", ["created_at"])


def downgrade():
    op.drop_index("ix_audit_created_at", table_name="audit_logs")
    op.drop_index("ix_audit_program", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_notifications_user_read", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("phase_final_scores")
    op.drop_index("ix_responses_criterion", table_name="responses")
    op.drop_table("responses")
    op.drop_index("ix_criteria_phase", table_name="criteria")
    op.drop_table("criteria")
    op.drop_index("ix_candidature_phases_passed", table_name="candidature_phases")
    op.drop_table("candidature_phases")
    op.drop_index("ix_candidature_members_submission", table_name="candidature_members")
    op.drop_index("uq_candidature_members_primary_submission", table_name="candidature_members")
    op.drop_table("candidature_members")
    op.drop_index("ix_phases_program_end", table_name="phases")
    op.drop_table("phases")
    op.drop_index("ix_candidatures_program", table_name="candidatures")
    op.drop_table("candidatures")
    op.drop_table("program_submissions")
    op.drop_index("ix_submissions_user", table_name="submissions")
    op.drop_table("submissions")
    op.drop_index("ix_forms_program", table_name="forms")
    op.drop_table("forms")
    op.drop_index("ix_program_mentors_mentor", table_name="program_mentors")
    op.drop_table("program_mentors")
    op.drop_index("ix_programs_status", table_name="programs")
    op.drop_table("programs")
    op.drop_table("startup_profiles")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_table("users")
