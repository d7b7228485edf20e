"""
Full-Text Search Capability.

Indexed prefix search over note title and content for the backends that
support it, with detection of the backend signals that mean the index is
missing so callers can fall back to substring matching.

    SQLite      FTS5 external-content table notes_fts, kept in sync by triggers
    PostgreSQL  to_tsvector/to_tsquery with the 'simple' configuration and a
                GIN expression index
    other       no indexed search, substring matching only

Availability is detected per query and never cached: installing the index
later takes effect without a restart.
"""

from sqlalchemy import func, literal_column, select, table, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.sql.elements import ColumnElement

from notesphere.backend.core.logging import get_logger

logger = get_logger(__name__)

MAX_SEARCH_TERMS = 8

SQLITE_UNAVAILABLE_MARKERS = (
    "no such table: notes_fts",
    "no such module: fts5",
)

# 42883 undefined_function, 42704 undefined_object (missing text search config)
POSTGRES_UNAVAILABLE_SQLSTATES = frozenset({"42883", "42704"})

POSTGRES_DOCUMENT = "notes.title || ' ' || notes.content"

SQLITE_DDL = (
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS notes_fts USING fts5(
        title, content, content='notes', content_rowid='rowid'
    )
    """,
    """
    CREATE TRIGGER IF NOT EXISTS notes_fts_ai AFTER INSERT ON notes BEGIN
        INSERT INTO notes_fts(rowid, title, content)
        VALUES (new.rowid, new.title, new.content);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS notes_fts_ad AFTER DELETE ON notes BEGIN
        INSERT INTO notes_fts(notes_fts, rowid, title, content)
        VALUES ('delete', old.rowid, old.title, old.content);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS notes_fts_au AFTER UPDATE OF title, content ON notes BEGIN
        INSERT INTO notes_fts(notes_fts, rowid, title, content)
        VALUES ('delete', old.rowid, old.title, old.content);
        INSERT INTO notes_fts(rowid, title, content)
        VALUES (new.rowid, new.title, new.content);
    END
    """,
    # Re-sync from the notes table; covers rows written before the triggers existed
    "INSERT INTO notes_fts(notes_fts) VALUES ('rebuild')",
)

POSTGRES_DDL = (
    """
    CREATE INDEX IF NOT EXISTS ix_notes_fulltext ON notes
    USING GIN (to_tsvector('simple'::regconfig, title || ' ' || content))
    """,
)


def tokenize(search_text: str | None) -> list[str]:
    """
    Split search text on whitespace, keeping at most MAX_SEARCH_TERMS tokens.

    Tokens without a letter or digit ("-", "&", "?") are dropped: the index
    tokenizers turn them into empty terms that would match nothing.
    """
    if not search_text:
        return []
    words = [token for token in search_text.split() if any(c.isalnum() for c in token)]
    return words[:MAX_SEARCH_TERMS]


def build_sqlite_match(tokens: list[str]) -> str:
    """Build an FTS5 MATCH expression: every token a quoted prefix term, AND-joined."""
    return " AND ".join('"{}"*'.format(token.replace('"', '""')) for token in tokens)


def build_postgres_tsquery(tokens: list[str]) -> str:
    """Build a to_tsquery expression: every token a quoted prefix lexeme, &-joined."""
    terms = []
    for token in tokens:
        escaped = token.replace("\\", "\\\\").replace("'", "''")
        terms.append(f"'{escaped}':*")
    return " & ".join(terms)


def supports_fulltext(dialect_name: str) -> bool:
    """Whether indexed search exists for this dialect at all."""
    return dialect_name in ("sqlite", "postgresql")


def needs_savepoint(dialect_name: str) -> bool:
    """
    Whether a failed full-text query must be isolated in a savepoint.

    A failed statement aborts the whole transaction on PostgreSQL; SQLite
    keeps the transaction usable.
    """
    return dialect_name == "postgresql"


def fulltext_clause(dialect_name: str, tokens: list[str]) -> ColumnElement[bool] | None:
    """
    Build the indexed-search predicate over the notes table.

    Returns None when the dialect has no indexed search or there are no tokens.
    """
    if not tokens:
        return None

    if dialect_name == "sqlite":
        matching_rowids = (
            select(literal_column("rowid"))
            .select_from(table("notes_fts"))
            .where(literal_column("notes_fts").match(build_sqlite_match(tokens)))
        )
        return literal_column("notes.rowid").in_(matching_rowids)

    if dialect_name == "postgresql":
        config = literal_column("'simple'::regconfig")
        document = func.to_tsvector(config, literal_column(POSTGRES_DOCUMENT))
        return document.bool_op("@@")(
            func.to_tsquery(config, build_postgres_tsquery(tokens))
        )

    return None


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def is_fulltext_unavailable(exc: DBAPIError, dialect_name: str) -> bool:
    """
    Whether a database error means the full-text capability is missing.

    Only the specific signals for a missing index, module, function or
    text-search configuration count; anything else is a real failure.
    """
    if dialect_name == "sqlite":
        message = str(exc.orig).lower()
        return any(marker in message for marker in SQLITE_UNAVAILABLE_MARKERS)
    if dialect_name == "postgresql":
        return _sqlstate(exc) in POSTGRES_UNAVAILABLE_SQLSTATES
    return False


async def install_fulltext(engine: AsyncEngine) -> bool:
    """
    Create the full-text structures for the engine's dialect.

    Best effort: failures are logged and reported as False, search then
    runs on the substring tier.
    """
    dialect_name = engine.dialect.name
    if dialect_name == "sqlite":
        statements = SQLITE_DDL
    elif dialect_name == "postgresql":
        statements = POSTGRES_DDL
    else:
        logger.info(
            "Full-text search not supported by dialect, using substring search",
            extra={"dialect": dialect_name},
        )
        return False

    try:
        async with engine.begin() as conn:
            for statement in statements:
                await conn.execute(text(statement))
    except DBAPIError as e:
        logger.warning(
            "Full-text index installation failed, using substring search",
            extra={"search_event": "fulltext_install_failed", "dialect": dialect_name, "error": str(e)},
        )
        return False

    logger.info("Full-text index installed", extra={"dialect": dialect_name})
    return True
