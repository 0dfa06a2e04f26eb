"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


user_role = sa.Enum('USER', 'AUTHOR', 'STAFF', 'ADMIN', name='userrole')
project_status = sa.Enum('DRAFT', 'PUBLISHED', 'COMPLETED', 'PAUSED', name='projectstatus')
contact_status = sa.Enum('ACTIVE', 'CLOSED', name='contactstatus')
sender_type = sa.Enum('STAFF', 'AUTHOR', name='sendertype')


def upgrade() -> None:
    op.create_table('users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('data_encryption_key', sa.String(length=64), nullable=False),
        sa.Column('refresh_token_hash', sa.String(length=64), nullable=True),
        sa.Column('refresh_token_expires', sa.DateTime(), nullable=True),
        sa.Column('reset_token_hash', sa.String(length=64), nullable=True),
        sa.Column('reset_token_expires', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_refresh_token_hash', 'users', ['refresh_token_hash'], unique=False)
    op.create_index('ix_users_reset_token_hash', 'users', ['reset_token_hash'], unique=False)

    op.create_table('projects',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('author_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('cover_image_url', sa.Text(), nullable=True),
        sa.Column('status', project_status, nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_projects_author_id', 'projects', ['author_id'], unique=False)
    op.create_index('ix_projects_author_deleted', 'projects', ['author_id', 'is_deleted'], unique=False)
    op.create_index('ix_projects_created_at', 'projects', ['created_at'], unique=False)

    op.create_table('chapters',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('project_id', sa.String(length=36), nullable=False),
        sa.Column('chapter_no', sa.Integer(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('project_id', 'chapter_no', name='uq_chapters_project_chapter_no')
    )
    op.create_index('ix_chapters_project_id', 'chapters', ['project_id'], unique=False)

    op.create_table('chapter_versions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('chapter_id', sa.String(length=36), nullable=False),
        sa.Column('version_number', sa.Integer(), nullable=False),
        sa.Column('raw_content', sa.Text(), nullable=False),
        sa.Column('word_count', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('upload_date', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['chapter_id'], ['chapters.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('chapter_id', 'version_number', name='uq_chapter_versions_number')
    )
    op.create_index('ix_chapter_versions_chapter_id', 'chapter_versions', ['chapter_id'], unique=False)
    op.create_index('ix_chapter_versions_chapter_active', 'chapter_versions', ['chapter_id', 'is_active'], unique=False)

    op.create_table('staff_author_contacts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('staff_id', sa.String(length=36), nullable=False),
        sa.Column('author_id', sa.String(length=36), nullable=False),
        sa.Column('status', contact_status, nullable=False),
        sa.Column('contact_date', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['staff_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('staff_id', 'author_id', name='uq_staff_author_contact')
    )
    op.create_index('ix_staff_author_contacts_staff_id', 'staff_author_contacts', ['staff_id'], unique=False)
    op.create_index('ix_staff_author_contacts_author_id', 'staff_author_contacts', ['author_id'], unique=False)

    op.create_table('staff_author_messages',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('contact_id', sa.String(length=36), nullable=False),
        sa.Column('sender_id', sa.String(length=36), nullable=False),
        sa.Column('sender_type', sender_type, nullable=False),
        sa.Column('message_text', sa.Text(), nullable=False),
        sa.Column('sent_at', sa.DateTime(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['contact_id'], ['staff_author_contacts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_staff_author_messages_contact_id', 'staff_author_messages', ['contact_id'], unique=False)
    op.create_index('ix_staff_author_messages_unread', 'staff_author_messages',
                    ['contact_id', 'sender_type', 'is_read'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_staff_author_messages_unread', table_name='staff_author_messages')
    op.drop_index('ix_staff_author_messages_contact_id', table_name='staff_author_messages')
    op.drop_table('staff_author_messages')

    op.drop_index('ix_staff_author_contacts_author_id', table_name='staff_author_contacts')
    op.drop_index('ix_staff_author_contacts_staff_id', table_name='staff_author_contacts')
    op.drop_table('staff_author_contacts')

    op.drop_index('ix_chapter_versions_chapter_active', table_name='chapter_versions')
    op.drop_index('ix_chapter_versions_chapter_id', table_name='chapter_versions')
    op.drop_table('chapter_versions')

    op.drop_index('ix_chapters_project_id', table_name='chapters')
    op.drop_table('chapters')

    op.drop_index('ix_projects_created_at', table_name='projects')
    op.drop_index('ix_projects_author_deleted', table_name='projects')
    op.drop_index('ix_projects_author_id', table_name='projects')
    op.drop_table('projects')

    op.drop_index('ix_users_reset_token_hash', table_name='users')
    op.drop_index('ix_users_refresh_token_hash', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (sender_type, contact_status, project_status, user_role):
        enum_type.drop(bind, checkfirst=True)
