from urllib.parse import urlparse, parse_qsl, urlencode, urlunparse
from sqlalchemy import create_engine


def normalize_db_url(db_url: str) -> str:
    """
    Ensure sslmode=require is present for the Supabase pooler and that
    SQLAlchemy picks the psycopg (v3) driver.
    """
    u = urlparse(db_url)
    if u.scheme in ("postgres", "postgresql"):
        u = u._replace(scheme="postgresql+psycopg")
    q = dict(parse_qsl(u.query, keep_blank_values=True))
    if "sslmode" not in q:
        q["sslmode"] = "require"
        u = u._replace(query=urlencode(q))
    return urlunparse(u)


def make_engine(db_url: str):
    db_url = normalize_db_url(db_url)
    return create_engine(db_url, pool_pre_ping=True)
