"""Text renderings of pipeline responses (Markdown digest, combined summary, errors)."""

from datetime import datetime
from typing import Optional

from gist.schemas import CombinedSummaryResponse, PipelineResponse

NO_RESULTS_TEMPLATE = (
    'No search results found for query: "{query}". '
    "This could be due to API limitations or the query not returning any results."
)


def _published_line(published_at: Optional[datetime]) -> str:
    return f"Published: {published_at.date().isoformat()}" if published_at else ""


def format_no_results(query: str) -> str:
    return NO_RESULTS_TEMPLATE.format(query=query)


def format_error(query: str, error: Exception) -> str:
    cause = str(error) or type(error).__name__
    return f'Error processing search query "{query}": {cause}'


def format_digest(response: PipelineResponse, model: str) -> str:
    """
    Markdown digest: header naming the query, one block per result, attribution line.

    Example:
        # Search Results for "quantum computing"

        Found 2 results and generated AI summaries:

        **1. What is quantum computing?**
        URL: https://...
        Published: 2024-01-05

        **AI Summary:**
        ...

        ---
    """
    if not response.results:
        return format_no_results(response.query)

    blocks = []
    for index, result in enumerate(response.results, start=1):
        lines = [f"**{index}. {result.title}**", f"URL: {result.url}"]
        published = _published_line(result.published_at)
        if published:
            lines.append(published)
        lines += ["", "**AI Summary:**", result.summary, "", "---"]
        blocks.append("\n".join(lines))

    return (
        f'# Search Results for "{response.query}"\n\n'
        f"Found {response.count} results and generated AI summaries:\n\n"
        + "\n\n".join(blocks)
        + f"\n\n*Summaries generated using {model}*"
    )


def format_combined(response: CombinedSummaryResponse, model: str) -> str:
    """Combined summary first, then the numbered source list."""
    if not response.sources:
        return format_no_results(response.query)

    source_lines = []
    for index, source in enumerate(response.sources, start=1):
        line = f"{index}. [{source.title}]({source.url})" if source.url else f"{index}. {source.title}"
        if source.published_at:
            line += f" ({source.published_at.date().isoformat()})"
        source_lines.append(line)

    return (
        f'# Summary for "{response.query}"\n\n'
        f"{response.summary}\n\n"
        f"## Sources ({response.count})\n\n"
        + "\n".join(source_lines)
        + f"\n\n*Summary generated using {model}*"
    )
