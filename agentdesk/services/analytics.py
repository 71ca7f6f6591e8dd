"""Querying stored call analytics."""

from urllib.parse import quote

from agentdesk.errors import NotFoundError
from agentdesk.models import CallRecord, Mode

MAX_REVIEW_TRANSCRIPTS = 5


def filter_calls(
    analytics: dict[str, dict], sentiment: str = "all", query: str = ""
) -> list[CallRecord]:
    """Return call records matching a sentiment and a transcript search.

    Args:
        analytics: Stored payloads keyed by call id
        sentiment: ``"all"`` or a sentiment label (case-insensitive)
        query: Substring to look for in the transcript (case-insensitive)

    Returns:
        Matching records, newest first
    """
    wanted = sentiment.lower()
    needle = query.lower()
    records = []

    for call_id, payload in analytics.items():
        record = CallRecord.from_payload(call_id, payload)
        if wanted != "all" and (record.sentiment or "").lower() != wanted:
            continue
        if needle and needle not in record.transcript.lower():
            continue
        records.append(record)

    records.sort(key=lambda r: r.start_timestamp or 0, reverse=True)
    return records


def select_transcripts(analytics: dict[str, dict], call_ids: list[str]) -> list[dict]:
    """Pick the transcripts, sentiment and summary of the chosen calls.

    Raises:
        ValueError: If no ids or more than MAX_REVIEW_TRANSCRIPTS are given
        NotFoundError: If an id has no stored analytics
    """
    unique_ids = list(dict.fromkeys(call_ids))
    if not unique_ids:
        raise ValueError("Please select at least one transcript for analysis")
    if len(unique_ids) > MAX_REVIEW_TRANSCRIPTS:
        raise ValueError(
            f"You can select up to {MAX_REVIEW_TRANSCRIPTS} transcripts for analysis"
        )

    selected = []
    for call_id in unique_ids:
        payload = analytics.get(call_id)
        if payload is None:
            raise NotFoundError(f"No analytics stored for call {call_id}")
        record = CallRecord.from_payload(call_id, payload)
        selected.append(
            {
                "transcript": record.transcript,
                "sentiment": record.sentiment,
                "summary": record.summary,
            }
        )
    return selected


def share_links(base_url: str, user_id: str, mode: Mode) -> dict[str, str]:
    """Build the public call page URL and an iframe snippet embedding it."""
    direct_url = f"{base_url.rstrip('/')}/shared/{quote(user_id)}/{Mode(mode).value}"
    embed_code = f"""<iframe
  src="{direct_url}?embed=true"
  width="100%"
  height="600"
  frameborder="0"
  allow="microphone"
  style="border-radius: 10px; box-shadow: 0 4px 6px -1px rgba(0,0,0,0.1);"
></iframe>"""
    return {"url": direct_url, "embed_code": embed_code}
