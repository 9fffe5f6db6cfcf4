"""
Run the full pipeline for one query: search → fetch/extract → summarize.

Run from backend with:
  python scripts/run_pipeline.py
  python scripts/run_pipeline.py "Your search query here" [num_results] [summary_length]

Requires: OPENAI_API_KEY, SERPER_API_KEY in env (or .env).
Prints search results, which content source each summary used, then the digest
and the combined summary for comparison.
"""

import os
import sys
from textwrap import shorten

# Add backend root so "gist" is importable from scripts/ or from backend/
_backend_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _backend_root not in sys.path:
    sys.path.insert(0, _backend_root)

from gist.config import Settings
from gist.errors import GistError
from gist.formatting import format_combined, format_digest, format_error
from gist.pipeline import build_pipeline, validate_request


def _trunc(s: str, max_len: int = 72) -> str:
    return shorten(s, width=max_len, placeholder="…") if s else ""


def _section(title: str) -> None:
    print()
    print("=" * 80)
    print(f"  {title}")
    print("=" * 80)


def main() -> None:
    query = (sys.argv[1] if len(sys.argv) > 1 else "quantum computing").strip() or "quantum computing"
    num_results = int(sys.argv[2]) if len(sys.argv) > 2 else 3
    summary_length = int(sys.argv[3]) if len(sys.argv) > 3 else 100

    settings = Settings()
    try:
        request = validate_request(query, num_results, summary_length)
        pipeline = build_pipeline(settings)
    except GistError as e:
        print(format_error(query, e))
        sys.exit(1)

    _section("Per-result summaries")
    try:
        response = pipeline.run(request)
    except GistError as e:
        print(format_error(query, e))
        sys.exit(1)

    print(f"{'#':>3}  {'source':<17}  {'chars':>6}  title")
    print("-" * 80)
    for i, r in enumerate(response.results, 1):
        print(f"{i:>3}  {r.content_source.value:<17}  {r.content_length:>6}  {_trunc(r.title, 46)}")
        if r.error:
            print(f"     error: {_trunc(r.error, 70)}")
    d = response.diagnostics
    print(
        f"\nfound={d.search_results_found} summarized={d.summaries_generated} "
        f"full_page={d.full_page_count} fallback={d.fallback_count} in {d.duration_seconds:.1f}s"
    )

    _section("Digest")
    print(format_digest(response, settings.summary_model))

    _section("Combined summary")
    combined = pipeline.run_combined(request)
    print(format_combined(combined, settings.summary_model))
    print()


if __name__ == "__main__":
    main()
