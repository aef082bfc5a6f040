"""Target site contract.

URLs, browser-like headers and the DataTables form payload the SPSE
listing endpoint expects. None of this is negotiated at runtime.
"""

from typing import Any

from lelang.core.types import AcquisitionRequest

TOKEN_FIELD = "authenticityToken"

# (searchable, orderable) per listing column; column 3 is an action column
_COLUMNS: tuple[tuple[bool, bool], ...] = (
    (True, True),
    (True, True),
    (True, True),
    (False, False),
    (True, True),
    (True, True),
)
ORDER_COLUMN = 5
ORDER_DIR = "desc"

# Site root is the base URL with this tenant path stripped
TENANT_PATH = "/kemkes"


def _flag(value: bool) -> str:
    return "true" if value else "false"


def data_url(base_url: str, year: int) -> str:
    """DataTables endpoint for one listing year."""
    return f"{base_url}/dt/lelang?tahun={year}"


def listing_get_url(base_url: str, request: AcquisitionRequest) -> str:
    """The same query expressed entirely as GET parameters."""
    return (
        f"{base_url}/dt/lelang?tahun={request.year}"
        f"&start={request.offset}&length={request.page_size}&draw={request.page_number}"
    )


def candidate_pages(base_url: str) -> list[str]:
    """Pages that may embed a security token, in the order to try them."""
    return [
        f"{base_url}/lelang",
        f"{base_url}/",
        f"{base_url}/beranda",
        f"{base_url}/login",
        base_url.replace(TENANT_PATH, ""),
    ]


def default_headers(user_agent: str) -> dict[str, str]:
    """Headers sent with every request."""
    return {
        "User-Agent": user_agent,
        "Accept": "*/*",
        "Accept-Language": "en-US,en;q=0.9,id;q=0.8",
        "Accept-Encoding": "gzip, deflate, br",
        "Connection": "keep-alive",
        "Sec-Fetch-Dest": "empty",
        "Sec-Fetch-Mode": "cors",
        "Sec-Fetch-Site": "same-origin",
    }


def build_payload(request: AcquisitionRequest, token: str | None = None) -> dict[str, Any]:
    """Build the DataTables form payload for ``request``.

    Args:
        request: Page to fetch
        token: Value for ``authenticityToken``; the field is omitted when None

    Returns:
        Ordered form fields
    """
    payload: dict[str, Any] = {"draw": request.page_number}
    for index, (searchable, orderable) in enumerate(_COLUMNS):
        prefix = f"columns[{index}]"
        payload[f"{prefix}[data]"] = str(index)
        payload[f"{prefix}[name]"] = ""
        payload[f"{prefix}[searchable]"] = _flag(searchable)
        payload[f"{prefix}[orderable]"] = _flag(orderable)
        payload[f"{prefix}[search][value]"] = ""
        payload[f"{prefix}[search][regex]"] = "false"

    payload["order[0][column]"] = str(ORDER_COLUMN)
    payload["order[0][dir]"] = ORDER_DIR
    payload["start"] = request.offset
    payload["length"] = request.page_size
    payload["search[value]"] = ""
    payload["search[regex]"] = "false"

    if token is not None:
        payload[TOKEN_FIELD] = token
    return payload
