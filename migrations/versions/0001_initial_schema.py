"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-02-20 00:00:00.000000

Creates users, missions, teacher_videos and daily_reports, and seeds the
mission catalog and the reference kultum videos.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.String(128), nullable=False),
        sa.Column("email", sa.String(256), nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("classroom", sa.String(64), nullable=True),
        sa.Column("role", sa.String(32), nullable=False, server_default="siswa"),
        sa.Column("total_xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_report_date", sa.Date(), nullable=True),
        sa.Column("progress_version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_users_classroom", "users", ["classroom"])

    # --- missions ---
    op.create_table(
        "missions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("category", sa.String(64), nullable=False),
        sa.Column("xp", sa.Integer(), nullable=False),
        sa.Column("requires_narration", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index("ix_missions_id", "missions", ["id"])

    # --- teacher_videos ---
    op.create_table(
        "teacher_videos",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("youtube_url", sa.String(512), nullable=False),
        sa.Column("video_id", sa.String(64), nullable=False),
        sa.Column("ustadz", sa.String(128), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("youtube_url"),
        sa.UniqueConstraint("video_id"),
    )
    op.create_index("ix_teacher_videos_id", "teacher_videos", ["id"])

    # --- daily_reports ---
    op.create_table(
        "daily_reports",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("report_date", sa.Date(), nullable=False),
        sa.Column("answers", sa.JSON(), nullable=False),
        sa.Column("narration", sa.Text(), nullable=True),
        sa.Column("xp_gained", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("bonus_xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("breakdown", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "report_date", name="uq_daily_reports_user_date"),
    )
    op.create_index("ix_daily_reports_id", "daily_reports", ["id"])
    op.create_index("ix_daily_reports_user_id", "daily_reports", ["user_id"])
    op.create_index("ix_daily_reports_report_date", "daily_reports", ["report_date"])

    # --- seed mission catalog ---
    op.execute("""
        INSERT INTO missions (code, title, category, xp, requires_narration, active)
        VALUES
          ('HAFALAN_SURAT_PENDEK',     'Hafalan Surat-Surat Pendek',               'RAMADAN_INTI',    30, false, true),
          ('CATATAN_PUASA_DAN_JAMAAH', 'Shalat Lima Waktu',                        'RAMADAN_INTI',    35, false, true),
          ('SHALAT_TARAWIH',           'Shalat Tarawih',                           'IBADAH_SUNNAH',   10, false, true),
          ('SHALAT_TAHAJJUD',          'Shalat Tahajjud',                          'IBADAH_SUNNAH',   10, false, true),
          ('SHALAT_DHUHA',             'Shalat Dhuha',                             'IBADAH_SUNNAH',   10, false, true),
          ('INFAQ_SHADAQAH',           'Infaq/ Shadaqah',                          'IBADAH_SUNNAH',   10, false, true),
          ('SILATURAHIM',              'Silaturahim',                              'IBADAH_SUNNAH',   20, false, true),
          ('TAKZIAH_ZIARAH',           'Takziah/Ziarah',                           'IBADAH_SUNNAH',   10, false, true),
          ('SUNNAH_LAINNYA',           'Lainnya (bisa diisi sendiri)',             'IBADAH_SUNNAH',   10, false, true),
          ('TADARUS_RAMADAN',          'Catatan Kegiatan Tadarus',                 'RAMADAN_INTI',    25, false, true),
          ('KULTUM_CERAMAH',           'Catatan Ceramah Agama / Kultum Ramadan',   'LITERASI_DAKWAH', 15, false, true),
          ('SHALAT_IDULFITRI',         'Catatan Shalat Idulfitri',                 'MOMEN_PUNCAK',    15, false, true),
          ('ZAKAT_FITRAH',             'Catatan Menunaikan Zakat Fitrah',          'MOMEN_PUNCAK',    20, false, true),
          ('SILATURRAHIM_RAMADAN',     'Catatan Kegiatan Silaturrahim',            'AKHLAK_SOSIAL',   20, false, true),
          ('REFLEKSI_DIRI',            'Lembar Penilaian Diri (Refleksi)',         'REFLEKSI',        20, true,  true)
    """)

    # --- seed reference videos ---
    op.execute("""
        INSERT INTO teacher_videos (title, youtube_url, video_id, ustadz, active, published_at)
        VALUES
          ('Keutamaan Menjaga Lisan di Bulan Ramadan', 'https://www.youtube.com/watch?v=YQHsXMglC9A',
           'YQHsXMglC9A', 'Ustadz Ahmad', true, '2025-03-01 00:00:00+07'),
          ('Adab kepada Orang Tua dan Guru', 'https://www.youtube.com/watch?v=fLexgOxsZu0',
           'fLexgOxsZu0', 'Ustadzah Aisyah', true, '2025-03-03 00:00:00+07')
    """)


def downgrade() -> None:
    op.drop_table("daily_reports")
    op.drop_table("teacher_videos")
    op.drop_table("missions")
    op.drop_table("users")
