import asyncio
import logging
import re

from sqlalchemy import text
from sqlalchemy.ext.asyncio import async_sessionmaker

from .schemas import (
    CategorySearchResult,
    CategorySuggestion,
    ResolvedQuery,
    SubcategorySuggestion,
)

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 20

# characters with meaning inside a tsquery
_TSQUERY_OPERATORS = re.compile(r"[&|!():*\\]")


def build_prefix_tsquery(q: str) -> str:
    """
    "desatas cañ" -> "desatas:* & cañ:*"
    Returns "" when no token survives sanitizing.
    """
    tokens = [_TSQUERY_OPERATORS.sub("", w) for w in q.split()]
    tokens = [t for t in tokens if t]
    return " & ".join(f"{t}:*" for t in tokens)


def _with_string_ids(row) -> dict:
    data = dict(row)
    for key in ("id", "category_id"):
        if data.get(key) is not None:
            data[key] = str(data[key])
    return data


def _match_clause(alias: str, with_prefix: bool) -> str:
    prefix = f"OR {alias}fts @@ to_tsquery('spanish', :prefix)" if with_prefix else ""
    return f"""(
        {alias}fts @@ plainto_tsquery('spanish', :q)
        {prefix}
        OR {alias}searchable_text % :q
    )"""


def _rank_expr(alias: str, with_prefix: bool) -> str:
    prefix = (
        f"+ COALESCE(ts_rank({alias}fts, to_tsquery('spanish', :prefix)), 0) * 2"
        if with_prefix
        else ""
    )
    return f"""(
        COALESCE(ts_rank({alias}fts, plainto_tsquery('spanish', :q)), 0) * 2
        {prefix}
        + COALESCE(similarity({alias}searchable_text, :q), 0)
    )"""


def subcategory_query(with_prefix: bool):
    return text(f"""
        SELECT s.id, s.name, s.slug, s."categoryId" AS category_id,
               c.name AS category_name, c.slug AS category_slug
        FROM "subcategories" s
        INNER JOIN "categories" c
            ON c.id = s."categoryId" AND c."deletedAt" IS NULL AND c."isActive" = true
        WHERE s."isActive" = true
          AND {_match_clause("s.", with_prefix)}
        ORDER BY {_rank_expr("s.", with_prefix)} DESC
        LIMIT :limit
    """)


def category_query(with_prefix: bool):
    return text(f"""
        SELECT id, name, slug
        FROM "categories"
        WHERE "deletedAt" IS NULL AND "isActive" = true
          AND {_match_clause("", with_prefix)}
        ORDER BY {_rank_expr("", with_prefix)} DESC
        LIMIT :limit
    """)


class CategoryQueryResolver:
    """
    Resolves free text to a category / subcategory using Postgres full-text
    search (stored "fts" column, plain + prefix tsquery) combined with pg_trgm
    similarity on "searchable_text".

    Rank = 2 * plain rank + 2 * prefix rank + trigram similarity.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def _fetch(self, stmt, q: str, prefix: str, limit: int) -> list[dict]:
        params = {"q": q, "limit": limit}
        if prefix:
            params["prefix"] = prefix
        async with self.session_factory() as session:
            result = await session.execute(stmt, params)
            return [_with_string_ids(row) for row in result.mappings().all()]

    async def _subcategories(self, q: str, prefix: str, limit: int) -> list[dict]:
        return await self._fetch(subcategory_query(bool(prefix)), q, prefix, limit)

    async def _categories(self, q: str, prefix: str, limit: int) -> list[dict]:
        return await self._fetch(category_query(bool(prefix)), q, prefix, limit)

    async def resolve_query(self, q: str) -> ResolvedQuery | None:
        trimmed = (q or "").strip()
        if len(trimmed) < MIN_QUERY_LENGTH:
            return None
        prefix = build_prefix_tsquery(trimmed)

        # any subcategory hit wins over categories, regardless of score
        subcategories = await self._subcategories(trimmed, prefix, 1)
        if subcategories:
            top = subcategories[0]
            logger.debug("query %r resolved to subcategory %s", trimmed, top["slug"])
            return ResolvedQuery(category_id=str(top["category_id"]), subcategory_slug=top["slug"])

        categories = await self._categories(trimmed, prefix, 1)
        if categories:
            logger.debug("query %r resolved to category %s", trimmed, categories[0]["id"])
            return ResolvedQuery(category_id=str(categories[0]["id"]))

        return None

    async def search_categories_and_subcategories(
        self, q: str, limit: int = DEFAULT_LIMIT
    ) -> CategorySearchResult:
        """Typeahead suggestions, same matching and ranking as resolve_query."""
        trimmed = (q or "").strip()
        if len(trimmed) < MIN_QUERY_LENGTH:
            return CategorySearchResult()
        prefix = build_prefix_tsquery(trimmed)

        cap = min(limit, MAX_LIMIT)
        half = max(1, cap // 2)
        rest = max(1, cap - cap // 2)

        categories, subcategories = await asyncio.gather(
            self._categories(trimmed, prefix, half),
            self._subcategories(trimmed, prefix, rest),
        )
        return CategorySearchResult(
            categories=[CategorySuggestion(**row) for row in categories],
            subcategories=[SubcategorySuggestion(**row) for row in subcategories],
        )
