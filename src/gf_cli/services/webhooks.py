"""Webhook service."""

from __future__ import annotations

from typing import Any

from ..models.webhooks import Webhook, events_from_groups
from ._helpers import Service, project_path, unwrap

WEBHOOK_LIST_KEY = "webhookList"


class WebhookService(Service):
    async def list(self, owner: str, project: str) -> list[Webhook]:
        data = await self._client.get(project_path(owner, project, "setting", "webhook"))
        return [Webhook.from_api(w) for w in unwrap(data, WEBHOOK_LIST_KEY)]

    async def get(self, owner: str, project: str, webhook_id: str) -> Webhook:
        data = await self._client.get(project_path(owner, project, "setting", "webhook", webhook_id))
        return Webhook.from_api(data or {})

    async def create(
        self,
        owner: str,
        project: str,
        url: str,
        secret: str,
        events: list[str],
    ) -> Webhook:
        """Create a webhook for the given event groups (``push``, ``pipeline``, ...)."""
        body = {
            "url": url,
            "secret": secret,
            "events": events_from_groups(events).to_payload(),
        }
        data = await self._client.post(project_path(owner, project, "setting", "webhook"), json_data=body)
        return Webhook.from_api(data or {})

    async def update(
        self,
        owner: str,
        project: str,
        webhook_id: str,
        url: str | None = None,
        secret: str | None = None,
        events: list[str] | None = None,
    ) -> Webhook:
        # Updates are POSTed to the webhook resource; PUT is not accepted.
        body: dict[str, Any] = {}
        if url:
            body["url"] = url
        if secret:
            body["secret"] = secret
        if events:
            body["events"] = events_from_groups(events).to_payload()
        data = await self._client.post(
            project_path(owner, project, "setting", "webhook", webhook_id),
            json_data=body,
        )
        return Webhook.from_api(data or {})

    async def delete(self, owner: str, project: str, webhook_id: str) -> None:
        await self._client.post(project_path(owner, project, "setting", "webhook", webhook_id, "delete"))

    async def test(self, owner: str, project: str, webhook_id: str) -> None:
        await self._client.post(project_path(owner, project, "setting", "webhook", webhook_id, "test"))
