"""EventBridge sender backed by boto3.

boto3 is synchronous, so each PutEvents call runs in a worker thread. If
the timeout race abandons a call, the thread still finishes and its
response is discarded.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Mapping

import boto3  # type: ignore
from botocore.client import BaseClient  # type: ignore

from .models import PublishEntry, SendResponse


def get_events_client(
    region_name: str | None = None,
    endpoint_url: str | None = None,
) -> BaseClient:
    """Create a boto3 EventBridge client. Region and endpoint pass through untouched."""
    session = boto3.Session(region_name=region_name) if region_name else boto3.Session()
    client_kwargs = {"endpoint_url": endpoint_url} if endpoint_url else {}
    return session.client("events", **client_kwargs)


def build_put_events_entry(entry: PublishEntry, default_bus: str) -> dict[str, Any]:
    return {
        "Source": entry.source,
        "DetailType": entry.detail_type,
        "Detail": entry.detail,
        "EventBusName": entry.event_bus_name or default_bus,
        "Time": datetime.now(timezone.utc),
    }


def parse_put_events_response(response: Mapping[str, Any]) -> SendResponse:
    """Reduce a single-entry PutEvents response to a SendResponse."""
    entries = response.get("Entries") or []
    first = entries[0] if entries else {}
    return SendResponse(
        failed_entry_count=int(response.get("FailedEntryCount") or 0),
        message_id=first.get("EventId"),
        error_code=first.get("ErrorCode"),
        error_message=first.get("ErrorMessage"),
    )


class EventBridgeSender:
    """Sends one entry per PutEvents call."""

    def __init__(
        self,
        event_bus_name: str,
        region_name: str | None = None,
        endpoint_url: str | None = None,
        client: BaseClient | None = None,
    ):
        self.event_bus_name = event_bus_name
        self.region_name = region_name
        self.endpoint_url = endpoint_url
        self._client = client

    @property
    def client(self) -> BaseClient:
        if self._client is None:
            self._client = get_events_client(self.region_name, self.endpoint_url)
        return self._client

    async def send(self, entry: PublishEntry) -> SendResponse:
        client = self.client
        request = build_put_events_entry(entry, self.event_bus_name)
        response = await asyncio.to_thread(client.put_events, Entries=[request])
        return parse_put_events_response(response)
