"""
HTTP client for the Supermemory API.

Each public operation performs exactly one outbound request, awaited to
completion. Responses are normalized into the models from
``team_memory.models.schemas``; the remote service remains the source of
truth and nothing is cached locally.
"""

import json
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from ..config.config_manager import AppConfig
from ..models.schemas import MemoryRecord, UserProfile
from ..utils.error_handling import ConfigurationError, RemoteError
from ..utils.i18n import Messages
from ..utils.logging_config import TimedOperation, get_component_logger
from .personalizer import Personalizer

logger = get_component_logger("supermemory")

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_memory_id() -> str:
    """Local identifier used when the API does not return one: mem_<epoch-ms>_<9 base36 chars>."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"mem_{int(time.time() * 1000)}_{suffix}"


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Unparseable timestamp from API: {value!r}")
        else:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc)


def _parse_tags(value: Any) -> List[str]:
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    if isinstance(value, (list, tuple)):
        return [str(tag) for tag in value if tag is not None]
    return []


def _fact_text(fact: Any) -> str:
    if isinstance(fact, dict):
        return str(fact.get("content") or fact.get("memory") or fact.get("fact") or "")
    return str(fact)


def _fact_list(profile: Dict[str, Any], key: str) -> List[Any]:
    facts = profile.get(key) or []
    if not isinstance(facts, list):
        raise RemoteError(f"Unexpected response shape from API: 'profile.{key}' is not a list")
    return facts


class SupermemoryClient:
    """Async gateway to the Supermemory search, storage and profile endpoints."""

    def __init__(
        self,
        config: AppConfig,
        personalizer: Optional[Personalizer] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Immutable application configuration
            personalizer: Rewrites content before storage, built from config if omitted
            transport: Optional httpx transport, used to stub the API in tests
        """
        self.config = config
        self.base_url = config.supermemory.base_url
        self.api_key = config.supermemory.api_key
        self.user_id = config.user.default_user_id
        self.personalizer = personalizer or Personalizer.from_config(config)
        self.messages = Messages(config.user.language)
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        """Whether a credential is available. No operation works without one."""
        return bool(self.api_key)

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(transport=self._transport)
        return self._http_client

    def _require_configuration(self) -> None:
        if not self.is_configured:
            raise ConfigurationError(
                self.messages.t("api_key_not_configured"),
                guidance=self.messages.t("api_key_guidance"),
            )

    async def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Send one POST request and return the decoded JSON body."""
        self._require_configuration()
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        with TimedOperation(f"POST /{endpoint}", logger):
            try:
                response = await self._client().post(url, json=payload, headers=self._get_headers())
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                raise RemoteError(
                    f"API request failed: {status} {e.response.reason_phrase}",
                    status_code=status,
                ) from e
            except httpx.HTTPError as e:
                raise RemoteError(f"HTTP request failed: {e}") from e

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise RemoteError(f"Invalid JSON response: {e}", status_code=response.status_code) from e

        if not isinstance(data, dict):
            raise RemoteError("Unexpected response shape from API", status_code=response.status_code)
        return data

    async def search(self, query: str, limit: int = 5) -> List[MemoryRecord]:
        """
        Search team memory.

        Args:
            query: Search query
            limit: Maximum number of results

        Returns:
            Records in the relevance order chosen by the API, possibly empty
        """
        data = await self._post("search", {
            "q": query,
            "containerTag": self.user_id,
            "limit": limit,
        })
        results = data.get("results") or []
        if not isinstance(results, list):
            raise RemoteError("Unexpected response shape from API: 'results' is not a list")
        records = [self._to_record(result) for result in results]
        logger.info(f"Search returned {len(records)} results", query_length=len(query), limit=limit)
        return records

    async def store(self, content: str, title: str, tags: Optional[List[str]] = None) -> str:
        """
        Personalize and store a memory.

        Args:
            content: Memory content
            title: Short descriptive title
            tags: Optional tags

        Returns:
            Identifier of the stored memory, never empty
        """
        self._require_configuration()
        tags = list(tags or [])

        personalized_content = self.personalizer.personalize(content)
        personalized_title = self.personalizer.personalize(title)
        if self.config.personalization.attribute_content:
            prefix = self.messages.t("user_saved", user=self.user_id)
            personalized_content = f"{prefix} {personalized_content}"

        body = f"{personalized_title} - {personalized_content}"
        local_id = generate_memory_id()
        metadata = {"title": personalized_title, "tags": tags}

        if self.config.supermemory.store_endpoint == "memories":
            endpoint = "memories"
            payload: Dict[str, Any] = {
                "content": body,
                "containerTags": [self.user_id],
                "metadata": metadata,
            }
        else:
            endpoint = "conversations"
            payload = {
                "conversationId": local_id,
                "messages": [{"role": "user", "content": body}],
                "containerTags": [self.user_id],
                "metadata": metadata,
            }

        data = await self._post(endpoint, payload)
        memory_id = data.get("id") or data.get("conversationId")
        if not memory_id:
            memory_id = local_id
            logger.debug(f"API response had no identifier, using {memory_id}")

        logger.info(f"Stored memory {memory_id}", endpoint=endpoint, tag_count=len(tags))
        return str(memory_id)

    async def get_profile(self, identity: Optional[str] = None) -> UserProfile:
        """
        Fetch the profile the API keeps for an identity.

        Args:
            identity: Container tag to read, defaults to the configured identity

        Returns:
            Static and dynamic facts, empty lists when none are known
        """
        data = await self._post("profile", {"containerTag": identity or self.user_id})
        profile = data.get("profile") or {}
        if not isinstance(profile, dict):
            raise RemoteError("Unexpected response shape from API: 'profile' is not an object")
        return UserProfile(
            static_facts=[_fact_text(fact) for fact in _fact_list(profile, "static")],
            dynamic_facts=[_fact_text(fact) for fact in _fact_list(profile, "dynamic")],
        )

    def _to_record(self, result: Any) -> MemoryRecord:
        """Normalize one search result from the API."""
        if not isinstance(result, dict):
            raise RemoteError("Unexpected response shape from API: search result is not an object")
        metadata = result.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        score = result.get("similarity") or result.get("score") or 0
        try:
            score = float(score)
        except (TypeError, ValueError):
            score = 0.0

        return MemoryRecord(
            id=str(result.get("id") or f"mem_{int(time.time() * 1000)}"),
            content=str(result.get("memory") or result.get("chunk") or ""),
            title=str(metadata.get("title") or self.messages.t("untitled")),
            tags=_parse_tags(metadata.get("tags")),
            score=score,
            created_at=_parse_timestamp(result.get("updatedAt") or result.get("createdAt")),
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "SupermemoryClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
