"""Alembic 마이그레이션: 카탈로그 테이블 생성"""
from alembic import op
import sqlalchemy as sa

revision = "0001_catalog_tables"
down_revision = None


def upgrade():
    """시드/채널/영상/크롤 진행/API 감사/수동 매핑 테이블 생성"""
    op.create_table(
        'seed_channels',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('seed_name', sa.String(255), nullable=False),
        sa.Column('resolution_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('resolved_channel_id', sa.String(64), nullable=True),
        sa.Column('resolved_title', sa.String(255), nullable=True),
        sa.Column('resolved_handle', sa.String(255), nullable=True),
        sa.Column('uploads_playlist_id', sa.String(64), nullable=True),
        sa.Column('resolution_method', sa.String(20), nullable=True),
        sa.Column('confidence_score', sa.Float(), nullable=True),
        sa.Column('chosen_rank', sa.Integer(), nullable=True),
        sa.Column('subscriber_count', sa.BigInteger(), nullable=True),
        sa.Column('video_count', sa.BigInteger(), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('resolution_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('seed_name'),
    )
    op.create_index('ix_seed_channels_resolution_status', 'seed_channels', ['resolution_status'])
    op.create_index('ix_seed_channels_resolved_channel_id', 'seed_channels', ['resolved_channel_id'])

    op.create_table(
        'channels',
        sa.Column('channel_id', sa.String(64), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('custom_url', sa.String(255), nullable=True),
        sa.Column('handle', sa.String(255), nullable=True),
        sa.Column('published_at', sa.String(40), nullable=True),
        sa.Column('thumbnail_url', sa.Text(), nullable=True),
        sa.Column('banner_url', sa.Text(), nullable=True),
        sa.Column('uploads_playlist_id', sa.String(64), nullable=True),
        sa.Column('subscriber_count', sa.BigInteger(), nullable=True),
        sa.Column('video_count', sa.BigInteger(), nullable=True),
        sa.Column('view_count', sa.BigInteger(), nullable=True),
        sa.Column('country', sa.String(8), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('channel_id'),
    )

    op.create_table(
        'videos',
        sa.Column('youtube_id', sa.String(32), nullable=False),
        sa.Column('channel_id', sa.String(64), nullable=False),
        sa.Column('title', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('published_at', sa.String(40), nullable=True),
        sa.Column('duration_iso', sa.String(32), nullable=True),
        sa.Column('duration_seconds', sa.Integer(), nullable=True),
        sa.Column('view_count', sa.BigInteger(), nullable=True),
        sa.Column('like_count', sa.BigInteger(), nullable=True),
        sa.Column('comment_count', sa.BigInteger(), nullable=True),
        sa.Column('tags', sa.Text(), nullable=True),
        sa.Column('category_id', sa.String(8), nullable=True),
        sa.Column('default_language', sa.String(16), nullable=True),
        sa.Column('default_audio_language', sa.String(16), nullable=True),
        sa.Column('is_embeddable', sa.Boolean(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=True),
        sa.Column('made_for_kids', sa.Boolean(), nullable=True),
        sa.Column('video_status', sa.String(16), nullable=False, server_default='active'),
        sa.Column('metadata_status', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('is_short', sa.Boolean(), nullable=True),
        sa.Column('is_music_candidate', sa.Boolean(), nullable=True),
        sa.Column('non_music_reason', sa.String(64), nullable=True),
        sa.Column('discovered_from', sa.String(32), nullable=False, server_default='uploads_playlist'),
        sa.Column('seed_source', sa.String(255), nullable=True),
        sa.Column('metadata_error', sa.Text(), nullable=True),
        sa.Column('discovered_at', sa.DateTime(), nullable=False),
        sa.Column('metadata_fetched_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('youtube_id'),
    )
    op.create_index('ix_videos_channel_id', 'videos', ['channel_id'])
    op.create_index('ix_videos_metadata_status', 'videos', ['metadata_status'])
    op.create_index('ix_videos_discovered_at', 'videos', ['discovered_at'])
    op.create_index('idx_videos_metadata_discovered', 'videos', ['metadata_status', 'discovered_at'])

    op.create_table(
        'playlist_crawl_progress',
        sa.Column('playlist_id', sa.String(64), nullable=False),
        sa.Column('channel_id', sa.String(64), nullable=False),
        sa.Column('total_results', sa.Integer(), nullable=True),
        sa.Column('fetched_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('next_page_token', sa.String(255), nullable=True),
        sa.Column('is_complete', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_crawled_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('playlist_id'),
    )
    op.create_index('ix_playlist_crawl_progress_channel_id', 'playlist_crawl_progress', ['channel_id'])

    op.create_table(
        'api_calls',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('endpoint', sa.String(32), nullable=False),
        sa.Column('params_hash', sa.String(64), nullable=False),
        sa.Column('request_params', sa.Text(), nullable=True),
        sa.Column('response_json', sa.Text(), nullable=True),
        sa.Column('response_status', sa.Integer(), nullable=True),
        sa.Column('quota_cost', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cached', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('called_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    # 일일 합계 / 캐시 조회
    op.create_index('idx_api_calls_cached_called', 'api_calls', ['cached', 'called_at'])
    op.create_index('idx_api_calls_hash_called', 'api_calls', ['params_hash', 'called_at'])

    op.create_table(
        'channel_overrides',
        sa.Column('seed_name', sa.String(255), nullable=False),
        sa.Column('channel_id', sa.String(64), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('seed_name'),
    )


def downgrade():
    """테이블 삭제"""
    op.drop_table('channel_overrides')
    op.drop_index('idx_api_calls_hash_called', table_name='api_calls')
    op.drop_index('idx_api_calls_cached_called', table_name='api_calls')
    op.drop_table('api_calls')
    op.drop_index('ix_playlist_crawl_progress_channel_id', table_name='playlist_crawl_progress')
    op.drop_table('playlist_crawl_progress')
    op.drop_index('idx_videos_metadata_discovered', table_name='videos')
    op.drop_index('ix_videos_discovered_at', table_name='videos')
    op.drop_index('ix_videos_metadata_status', table_name='videos')
    op.drop_index('ix_videos_channel_id', table_name='videos')
    op.drop_table('videos')
    op.drop_table('channels')
    op.drop_index('ix_seed_channels_resolved_channel_id', table_name='seed_channels')
    op.drop_index('ix_seed_channels_resolution_status', table_name='seed_channels')
    op.drop_table('seed_channels')
