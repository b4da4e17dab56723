from http import HTTPStatus

import aiohttp
from yarl import URL

from jsonmanager.logging import manager_logger

async def get_body(url: str | URL, session: aiohttp.ClientSession | None = None) -> bytes | None:
    """
    Issues a GET request and returns the response body.

    Only 200 OK counts as success, any other status gives None.
    Connection errors are not handled here and reach the caller.

    Args:
        url (str | URL): The endpoint URL.
        session (aiohttp.ClientSession | None): Session to send the request with.
            A new session is opened and closed around the request when omitted.

    Returns:
        bytes | None: The body of a 200 OK response, or None for any other status.
    """
    if session is None:
        async with aiohttp.ClientSession() as own_session:
            return await get_body(url, own_session)
    async with session.get(url) as response:
        if response.status != HTTPStatus.OK:
            manager_logger("load_from_endpoint").warning(f"GET {url} returned {response.status}")
            return None
        return await response.read()
