# src/filters/query_builder.py

"""Pre-fetch marketplace query generation from diagnosis answers."""

import logging

from src.models.preferences import UserPreferenceProfile

logger = logging.getLogger("protein_match.filters")

_BASE_KEYWORD = "プロテイン"

_FLAVOR_KEYWORDS: dict[str, str] = {
    "chocolate": "チョコ",
    "fruit": "ストロベリー",
    "coffee": "コーヒー",
}


class QueryBuilder:
    """Turn a preference profile into a marketplace keyword query."""

    @staticmethod
    def build_query(prefs: UserPreferenceProfile) -> str:
        """Build the keyword query sent to every marketplace.

        Plant-leaning or lactose-intolerant profiles search for soy,
        everything else for whey; a concrete flavor answer adds its keyword.
        """
        terms = [_BASE_KEYWORD]
        if prefs.body == "plant" or prefs.lactose_intolerant:
            terms.append("ソイ")
        else:
            terms.append("ホエイ")

        flavor_kw = _FLAVOR_KEYWORDS.get(prefs.flavor)
        if flavor_kw:
            terms.append(flavor_kw)

        query = " ".join(terms)
        logger.debug("Built query for %s: '%s'", prefs, query)
        return query
