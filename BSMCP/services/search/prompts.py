from typing import Any, Dict, List, Optional

from BSMCP.services.shared.errors import ValidationError

from .capabilities import CAPABILITIES

PROMPT_NAME = "search_and_analyze"

DEPTH_RESULT_COUNTS = {"surface": 5, "detailed": 10, "comprehensive": 15}
DEFAULT_DEPTH = "detailed"
DEFAULT_FOCUS = "comprehensive insights and key findings"

DEPTH_GUIDANCE = {
    "surface": [
        "Provide a concise overview of the main points",
        "Highlight 3-5 key findings",
        "Keep analysis brief but informative",
    ],
    "detailed": [
        "Analyze key themes and patterns",
        "Examine different perspectives",
        "Provide context and background information",
        "Draw meaningful conclusions",
        "Offer practical insights",
    ],
    "comprehensive": [
        "Conduct thorough analysis of all aspects",
        "Examine multiple perspectives and viewpoints",
        "Include historical context where relevant",
        "Analyze trends, patterns, and implications",
        "Consider broader impact and significance",
        "Provide detailed recommendations",
    ],
}

PROMPT_TEMPLATE = """# Research and Analysis Task

You are a professional research assistant with access to Brave Search tools. Your task is to research "{query}" and provide {depth} analysis.

## Research Instructions

1. **Primary Search**: Use the {tool_name} tool to find relevant information
   - Query: "{query}"
   - Count: {count} results
   - Focus on authoritative and recent sources

2. **Supplementary Research** (if needed):
   - If searching news, also check web results for broader context
   - If searching web, consider checking news for recent developments
   - Cross-reference information from multiple sources

3. **Source Evaluation**:
   - Prioritize authoritative sources (government, academic, established media)
   - Note publication dates and source credibility
   - Identify any potential bias or limitations

## Analysis Framework

{analysis_instructions}

## Output Structure

Provide your analysis in the following format:

### Executive Summary
- Brief overview of key findings
- Main conclusions and insights

### Detailed Findings
- Organized by themes or categories
- Include specific data, quotes, and examples
- Reference sources with URLs

### Analysis and Insights
- {analysis_focus}
- Trends and patterns identified
- Implications and significance

### Sources and Credibility
- List of primary sources used
- Assessment of source quality and reliability
- Any limitations or gaps in available information

### Recommendations
- Suggested next steps or areas for further research
- Actionable insights based on findings

## Search Parameters
- Primary query: "{query}"
- Search type: {search_type}
- Results per search: {count}
- Analysis focus: {analysis_focus}
- Depth level: {depth}

Begin your research now by using the appropriate search tool(s)."""


class SearchAnalysisPrompt:
    """Research-and-analysis prompt built around one of the search tools."""

    name = PROMPT_NAME
    description = (
        "Search for information using Brave Search and provide comprehensive analysis. "
        "This prompt guides the AI to perform research and deliver structured insights."
    )
    arguments: List[Dict[str, Any]] = [
        {"name": "query", "description": "What to search for - the main topic or question", "required": True},
        {"name": "search_type", "description": "Type of search to perform: web, news, images, or videos", "required": False},
        {
            "name": "analysis_focus",
            "description": "What aspect to focus the analysis on (e.g., trends, facts, opinions, recent developments)",
            "required": False,
        },
        {"name": "depth", "description": "Analysis depth: surface, detailed, or comprehensive", "required": False},
    ]

    @staticmethod
    def result_count(depth: str) -> int:
        return DEPTH_RESULT_COUNTS.get(depth, DEPTH_RESULT_COUNTS[DEFAULT_DEPTH])

    @staticmethod
    def analysis_instructions(depth: str, focus: str) -> str:
        guidance = DEPTH_GUIDANCE.get(depth, DEPTH_GUIDANCE[DEFAULT_DEPTH])
        return "\n".join([f"Focus your analysis on: {focus}"] + [f"- {line}" for line in guidance])

    def generate(self, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Render the prompt as ``{description, messages}``.

        Raises:
            ValidationError: when ``query`` is missing or ``search_type`` is unknown.
        """
        arguments = arguments or {}
        query = arguments.get("query")
        if not query:
            raise ValidationError([("query", "Query argument required")], service="prompt")

        search_type = arguments.get("search_type") or "web"
        capability = CAPABILITIES.get(search_type)
        if capability is None:
            raise ValidationError([("search_type", f"Unsupported search type: {search_type}")], service="prompt")

        analysis_focus = arguments.get("analysis_focus") or DEFAULT_FOCUS
        depth = arguments.get("depth") or DEFAULT_DEPTH
        count = self.result_count(depth)

        text = PROMPT_TEMPLATE.format(
            query=query,
            depth=depth,
            tool_name=capability.tool_name,
            count=count,
            analysis_instructions=self.analysis_instructions(depth, analysis_focus),
            analysis_focus=analysis_focus,
            search_type=search_type,
        )
        return {
            "description": f"Research and analyze: {query} ({depth} {search_type} analysis)",
            "messages": [{"role": "user", "content": {"type": "text", "text": text}}],
        }
