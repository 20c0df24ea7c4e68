from fastapi import Depends, HTTPException, status

from .immich import ImmichClient


def get_media_client() -> ImmichClient:
    """Build a photo server client from the current settings."""
    return ImmichClient.from_settings()


def get_configured_media_client(
    client: ImmichClient = Depends(get_media_client),
) -> ImmichClient:
    """Same as get_media_client, but rejects the request if no server is set up."""
    if not client.is_configured():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Photo server is not configured. Set IMMICH_SERVER_URL and IMMICH_API_KEY.",
        )
    return client
