"""Publer REST client.

Publer posts one uploaded video to several social accounts in a single
bulk job. Job progress is reported through ``/job_status/{id}`` whose
payload is normalized here into :class:`JobStatus`.

Docs: https://publer.com/docs
"""

import mimetypes
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Literal

import httpx

from reelsmith.config.upload import PublishConfig
from reelsmith.core.exceptions import ExternalAPIError
from reelsmith.core.logging import get_logger

logger = get_logger(__name__)

SERVICE = "publer"

JobState = Literal["pending", "processing", "completed", "failed"]


@dataclass
class JobStatus:
    """Normalized Publer job status.

    Attributes:
        status: pending, processing, completed or failed
        url: Top-level post link, when Publer reports one
        post_id: Created post id
        error: Joined failure messages
        platform_urls: Provider -> post link for posts reported individually
        platform_errors: Provider -> failure message
    """

    status: JobState
    progress: int | None = None
    url: str | None = None
    post_id: str | None = None
    error: str | None = None
    platform_urls: dict[str, str] = field(default_factory=dict)
    platform_errors: dict[str, str] = field(default_factory=dict)


@dataclass
class PublerAccount:
    """Connected social account."""

    id: str
    name: str
    provider: str
    avatar: str | None = None


def merge_tags(base_tags: list[str], tags: list[str] | None) -> list[str]:
    """Combine base and per-post hashtags, dropping duplicates in order."""
    return list(dict.fromkeys([*base_tags, *(tags or [])]))


def parse_job_status(payload: dict[str, Any]) -> JobStatus:
    """Normalize a ``/job_status`` response.

    Failures listed under ``payload.failures`` win over any reported status,
    since Publer marks a job ``complete`` even when every post failed.

    Args:
        payload: Decoded JSON response

    Returns:
        Normalized job status
    """
    inner = payload.get("payload") or {}
    if not isinstance(inner, dict):
        inner = {}

    platform_errors: dict[str, str] = {}
    messages: list[str] = []
    failures = inner.get("failures") or {}
    if isinstance(failures, dict):
        failures = [item for group in failures.values() for item in _as_list(group)]
    for failure in _as_list(failures):
        if not isinstance(failure, dict):
            continue
        message = failure.get("message") or "Unknown error"
        messages.append(message)
        provider = failure.get("provider")
        if provider:
            platform_errors[provider] = message

    platform_urls: dict[str, str] = {}
    for post in _as_list(inner.get("posts")):
        if not isinstance(post, dict):
            continue
        provider = post.get("provider") or post.get("network")
        link = post.get("post_link") or post.get("social_link") or post.get("url")
        if provider and link:
            platform_urls[provider] = link

    raw_status = payload.get("status")
    raw_state = payload.get("state") or ""
    error = "; ".join(messages) if messages else None

    status: JobState = "pending"
    if error:
        status = "failed"
    elif raw_status in ("complete", "completed") or raw_state == "published_posted":
        status = "completed"
    elif raw_status == "failed" or "failed" in raw_state:
        status = "failed"
    elif raw_status == "processing" or "pending" in raw_state:
        status = "processing"

    return JobStatus(
        status=status,
        progress=payload.get("progress"),
        url=payload.get("social_link") or payload.get("url"),
        post_id=payload.get("post_id") or inner.get("post_id"),
        error=error or payload.get("error") or payload.get("message"),
        platform_urls=platform_urls,
        platform_errors=platform_errors,
    )


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


class PublerClient:
    """Async Publer API client.

    Example:
        >>> async with PublerClient(api_key, workspace_id) as publer:
        ...     media_id = await publer.upload_media(Path("output/video.mp4"))
        ...     job_id = await publer.create_post(
        ...         accounts={"youtube": "acc_1"},
        ...         media_id=media_id,
        ...         title="Title",
        ...         description="Description",
        ...     )
    """

    def __init__(
        self,
        api_key: str,
        workspace_id: str,
        config: PublishConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Publer API key
            workspace_id: Publer workspace
            config: Posting settings
            transport: Custom transport (``httpx.MockTransport`` in tests)
        """
        self.config = config or PublishConfig()
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            headers={
                "Authorization": f"Bearer-API {api_key}",
                "Publer-Workspace-Id": workspace_id,
            },
            timeout=httpx.Timeout(self.config.request_timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "PublerClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ExternalAPIError(SERVICE, str(e), endpoint=path) from e
        if response.is_error:
            raise ExternalAPIError(
                SERVICE,
                f"{method} {path} failed",
                status_code=response.status_code,
                endpoint=path,
                response_body=response.text,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ExternalAPIError(
                SERVICE,
                "Response is not valid JSON",
                status_code=response.status_code,
                endpoint=response.request.url.path,
                response_body=response.text,
            ) from e

    # ------------------------------------------------------------------
    # Workspace
    # ------------------------------------------------------------------

    async def test_connection(self) -> bool:
        """Check credentials against ``/workspaces``."""
        try:
            await self._request("GET", "/workspaces")
        except ExternalAPIError as e:
            logger.warning("Publer connection test failed", error=str(e))
            return False
        return True

    async def list_accounts(self, provider: str | None = None) -> list[PublerAccount]:
        """List connected social accounts.

        Args:
            provider: Only return accounts of this provider (e.g. "youtube")
        """
        response = await self._request("GET", "/accounts")
        accounts = [
            PublerAccount(
                id=str(item["id"]),
                name=item.get("name", ""),
                provider=item.get("provider", ""),
                avatar=item.get("avatar"),
            )
            for item in self._json(response)
        ]
        if provider:
            accounts = [a for a in accounts if a.provider == provider]
        return accounts

    # ------------------------------------------------------------------
    # Posting
    # ------------------------------------------------------------------

    async def upload_media(self, file_path: Path) -> str:
        """Upload a video file.

        Args:
            file_path: Local file to upload

        Returns:
            Publer media id
        """
        mime_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
        logger.info("Uploading media to Publer", file=file_path.name)
        with file_path.open("rb") as fh:
            response = await self._request(
                "POST",
                "/media",
                files={"file": (file_path.name, fh, mime_type)},
                timeout=self.config.upload_timeout,
            )
        result = self._json(response)
        media_id = result.get("id") or result.get("media_id")
        if not media_id:
            raise ExternalAPIError(SERVICE, "Media upload returned no id", endpoint="/media")
        return str(media_id)

    def build_post_body(
        self,
        accounts: dict[str, str],
        media_id: str,
        title: str,
        description: str,
        tags: list[str] | None = None,
        schedule_at: datetime | None = None,
        draft: bool | None = None,
        now: datetime | None = None,
    ) -> tuple[str, dict[str, Any]]:
        """Build the endpoint and bulk body for a post.

        Immediate posts go to ``/posts/schedule/publish``; drafts and
        instants more than ``min_future_seconds`` ahead go to
        ``/posts/schedule``.

        Args:
            accounts: Platform -> account id
            media_id: Uploaded media id
            title: Video title
            description: Description without hashtags
            tags: Extra hashtags
            schedule_at: Desired publish instant (UTC)
            draft: Override the configured draft mode
            now: Current time, for tests

        Returns:
            (endpoint path, JSON body)
        """
        use_draft = self.config.draft_mode if draft is None else draft
        now = now or datetime.now(UTC)
        min_future = now + timedelta(seconds=self.config.min_future_seconds)
        is_future = schedule_at is not None and schedule_at > min_future

        all_tags = merge_tags(self.config.base_tags, tags)
        text = f"{description}\n\n{' '.join(all_tags)}"
        plain_tags = [t.replace("#", "") for t in all_tags]
        media = [{"id": media_id, "type": "video"}]

        account_entries: list[dict[str, str]] = []
        for account_id in accounts.values():
            entry = {"id": account_id}
            if is_future and schedule_at is not None:
                entry["scheduled_at"] = schedule_at.isoformat()
            account_entries.append(entry)

        networks: dict[str, dict[str, Any]] = {}
        if "youtube" in accounts:
            networks["youtube"] = {
                "type": "short",
                "media": media,
                "title": title,
                "description": text,
                "privacy": self.config.privacy,
                "tags": plain_tags,
            }
        if "tiktok" in accounts:
            networks["tiktok"] = {
                "type": "video",
                "media": media,
                "text": text,
            }

        body = {
            "bulk": {
                "state": "draft_private" if use_draft else "scheduled",
                "posts": [
                    {
                        "accounts": account_entries,
                        "text": text,
                        "networks": networks,
                    }
                ],
            }
        }
        endpoint = "/posts/schedule" if use_draft or is_future else "/posts/schedule/publish"
        return endpoint, body

    async def create_post(
        self,
        accounts: dict[str, str],
        media_id: str,
        title: str,
        description: str,
        tags: list[str] | None = None,
        schedule_at: datetime | None = None,
        draft: bool | None = None,
    ) -> str:
        """Create a post on every given account.

        Returns:
            Publer job id
        """
        endpoint, body = self.build_post_body(
            accounts, media_id, title, description, tags, schedule_at, draft
        )
        logger.info(
            "Creating Publer post",
            endpoint=endpoint,
            state=body["bulk"]["state"],
            platforms=sorted(accounts),
        )
        response = await self._request("POST", endpoint, json=body)
        result = self._json(response)
        job_id = result.get("job_id") or result.get("id")
        if not job_id:
            raise ExternalAPIError(SERVICE, "Post creation returned no job id", endpoint=endpoint)
        return str(job_id)

    async def get_job_status(self, job_id: str) -> JobStatus:
        """Fetch and normalize a job status."""
        response = await self._request("GET", f"/job_status/{job_id}")
        return parse_job_status(self._json(response))

    async def delete_post(self, post_id: str) -> None:
        """Delete a post; an already missing post counts as deleted."""
        try:
            await self._request("DELETE", f"/posts/{post_id}")
        except ExternalAPIError as e:
            if e.status_code == 404:
                logger.info("Publer post already gone", post_id=post_id)
                return
            raise


__all__ = [
    "JobStatus",
    "PublerAccount",
    "PublerClient",
    "merge_tags",
    "parse_job_status",
]
