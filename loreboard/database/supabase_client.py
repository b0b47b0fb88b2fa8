from supabase import AsyncClient, Client, acreate_client, create_client
from loreboard.config.settings import settings


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Needed for admin user updates."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Client:
    return SupabaseClient.get_service_client()


async def create_async_supabase(url: str = None, key: str = None) -> AsyncClient:
    """Async client for the page runtime; realtime channels only exist on the async client."""
    url = url or settings.supabase_url
    key = key or settings.supabase_key
    if not url or not url.startswith("http"):
        raise ValueError("Supabase URL invalid. Set SUPABASE_URL (must be https://xxxx.supabase.co).")
    if not key:
        raise ValueError("Supabase key missing. Set SUPABASE_KEY.")
    return await acreate_client(url, key)
