from typing import Dict, List, NamedTuple


class EnhancementRule(NamedTuple):
    keywords: List[str]
    filters: List[str]


class QueryEnhancer:
    """Appends a domain keyword to a query based on the search type.

    The output feeds the cache key, so ``enhance`` must stay a pure
    function of its arguments.
    """

    RULES: Dict[str, EnhancementRule] = {
        "web": EnhancementRule(
            keywords=["latest", "guide", "tutorial", "review"],
            filters=["site:reddit.com", "site:stackoverflow.com"],
        ),
        "news": EnhancementRule(
            keywords=["breaking", "latest", "recent", "today"],
            filters=["after:2024-01-01"],
        ),
        "images": EnhancementRule(
            keywords=["high quality", "HD", "professional"],
            filters=["filetype:jpg", "filetype:png"],
        ),
        "videos": EnhancementRule(
            keywords=["tutorial", "explanation", "demo"],
            filters=["duration:medium", "quality:high"],
        ),
    }

    def enhance(self, query: str, search_type: str) -> str:
        rule = self.RULES.get(search_type)
        if rule is None:
            return query

        lowered = query.lower()
        if any(keyword.lower() in lowered for keyword in rule.keywords):
            return query

        keyword = self._select_keyword(rule)
        return f"{query} {keyword}" if keyword else query

    def _select_keyword(self, rule: EnhancementRule) -> str:
        # First declared keyword; any smarter policy must remain deterministic.
        return rule.keywords[0] if rule.keywords else ""
