"""Publishing credential resolution.

Environment settings win; the stored :class:`PublishingSettings` row fills
whatever the environment leaves empty.
"""

from dataclasses import dataclass, field

from reelsmith.core.config import Config
from reelsmith.core.exceptions import MissingCredentialsError
from reelsmith.core.types import SessionFactory
from reelsmith.models.publishing_settings import PublishingSettings
from reelsmith.models.rotation_counter import SINGLETON_ID
from reelsmith.models.upload_schedule import Platform


@dataclass
class PublerCredentials:
    """Resolved Publer credentials and default accounts."""

    api_key: str
    workspace_id: str
    accounts: dict[str, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"PublerCredentials(workspace_id={self.workspace_id!r}, accounts={self.accounts!r})"


class PublerSettingsResolver:
    """Merges environment and stored publishing settings.

    Example:
        >>> resolver = PublerSettingsResolver(db_session_factory, get_config())
        >>> credentials = await resolver.resolve()
    """

    def __init__(self, db_session_factory: SessionFactory, config: Config) -> None:
        self.db_session_factory = db_session_factory
        self.config = config

    async def stored(self) -> PublishingSettings | None:
        async with self.db_session_factory() as session:
            return await session.get(PublishingSettings, SINGLETON_ID)

    async def resolve(self) -> PublerCredentials:
        """Credentials for the Publer API.

        Raises:
            MissingCredentialsError: If the API key or workspace is missing
        """
        stored = await self.stored()
        api_key = self.config.publer_api_key or (stored.api_key if stored else None)
        workspace_id = self.config.publer_workspace_id or (stored.workspace_id if stored else None)
        if not api_key or not workspace_id:
            raise MissingCredentialsError(
                "publer",
                "Publer not configured. Set PUBLER_API_KEY and PUBLER_WORKSPACE_ID.",
                config_key="PUBLER_API_KEY",
            )

        defaults = {
            Platform.YOUTUBE.value: self.config.publer_youtube_account_id
            or (stored.youtube_account_id if stored else None),
            Platform.TIKTOK.value: self.config.publer_tiktok_account_id
            or (stored.tiktok_account_id if stored else None),
        }
        return PublerCredentials(
            api_key=api_key,
            workspace_id=workspace_id,
            accounts={platform: account for platform, account in defaults.items() if account},
        )

    async def resolve_with_accounts(self) -> PublerCredentials:
        """Like :meth:`resolve`, also requiring at least one default account.

        Raises:
            MissingCredentialsError: If credentials or accounts are missing
        """
        credentials = await self.resolve()
        if not credentials.accounts:
            raise MissingCredentialsError(
                "publer",
                "No publishing account configured. Set PUBLER_YOUTUBE_ACCOUNT_ID "
                "or PUBLER_TIKTOK_ACCOUNT_ID.",
                config_key="PUBLER_YOUTUBE_ACCOUNT_ID",
            )
        return credentials


__all__ = [
    "PublerCredentials",
    "PublerSettingsResolver",
]
