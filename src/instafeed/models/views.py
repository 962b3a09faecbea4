"""Read-only aggregation views over the base tables.

The views are plain ``CREATE VIEW`` statements so counts are recomputed on
every read. They are described here as Core tables on a separate MetaData so
``Base.metadata.create_all`` never tries to create them as real tables.
"""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, Text

view_metadata = MetaData()

post_stats = Table(
    "post_stats",
    view_metadata,
    Column("post_id", String(36), primary_key=True),
    Column("user_id", String(36)),
    Column("image_url", Text),
    Column("caption", Text),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
    Column("likes_count", Integer),
    Column("comments_count", Integer),
)

user_stats = Table(
    "user_stats",
    view_metadata,
    Column("user_id", String(36), primary_key=True),
    Column("clerk_id", String(255)),
    Column("name", Text),
    Column("posts_count", Integer),
    Column("followers_count", Integer),
    Column("following_count", Integer),
)

POST_STATS_SQL = """
SELECT
    p.id AS post_id,
    p.user_id AS user_id,
    p.image_url AS image_url,
    p.caption AS caption,
    p.created_at AS created_at,
    p.updated_at AS updated_at,
    (SELECT COUNT(*) FROM likes l WHERE l.post_id = p.id) AS likes_count,
    (SELECT COUNT(*) FROM comments c WHERE c.post_id = p.id) AS comments_count
FROM posts p
"""

USER_STATS_SQL = """
SELECT
    u.id AS user_id,
    u.clerk_id AS clerk_id,
    u.name AS name,
    (SELECT COUNT(*) FROM posts p WHERE p.user_id = u.id) AS posts_count,
    (SELECT COUNT(*) FROM follows f WHERE f.following_id = u.id) AS followers_count,
    (SELECT COUNT(*) FROM follows f WHERE f.follower_id = u.id) AS following_count
FROM users u
"""

VIEW_DEFINITIONS: dict[str, str] = {
    "post_stats": POST_STATS_SQL,
    "user_stats": USER_STATS_SQL,
}
