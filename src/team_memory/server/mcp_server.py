"""
MCP Server implementation for team memory.

Exposes search, store, profile and status tools over the Model Context
Protocol and forwards them to the Supermemory API. Tool failures are raised
as exceptions; the MCP SDK turns them into error results for the client.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, TypeVar

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .. import __version__
from ..config.config_manager import AppConfig, ConfigManager
from ..models.schemas import MemoryRecord, ProfileRequest, SearchRequest, StoreRequest, UserProfile
from ..services.supermemory_client import SupermemoryClient
from ..utils.error_handling import ValidationError, log_tool_errors
from ..utils.i18n import Messages
from ..utils.logging_config import TimedOperation, get_component_logger, setup_logging

logger = get_component_logger("mcp_server")

SERVER_NAME = "team-memory"

SEARCH_TOOL = "team_memory_search"
STORE_TOOL = "team_memory_store"
PROFILE_TOOL = "team_memory_profile"
STATUS_TOOL = "team_memory_status"

RequestT = TypeVar("RequestT", bound=BaseModel)
ToolHandler = Callable[[Dict[str, Any]], Awaitable[List[TextContent]]]


def _text(text: str) -> List[TextContent]:
    return [TextContent(type="text", text=text)]


class TeamMemoryServer:
    """MCP Server routing team memory tools to the Supermemory API."""

    def __init__(self, config: AppConfig, client: Optional[SupermemoryClient] = None):
        """
        Initialize the MCP team memory server.

        Args:
            config: Immutable application configuration
            client: Supermemory gateway, built from config if omitted
        """
        self.config = config
        self.client = client or SupermemoryClient(config)
        self.messages = Messages(config.user.language)
        self.server = Server(SERVER_NAME)
        self._handlers: Dict[str, ToolHandler] = {
            SEARCH_TOOL: self._handle_search,
            STORE_TOOL: self._handle_store,
            PROFILE_TOOL: self._handle_profile,
            STATUS_TOOL: self._handle_status,
        }

        self._register_handlers()

    def _register_handlers(self) -> None:
        """Register MCP protocol handlers."""

        @self.server.list_tools()
        async def handle_list_tools() -> List[Tool]:
            return self.tool_definitions()

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
            return await self.dispatch(name, arguments)

    def tool_definitions(self) -> List[Tool]:
        """Describe the tools offered to MCP clients."""
        return [
            Tool(
                name=SEARCH_TOOL,
                description=(
                    "🔍 Search team memory for information, code, decisions, and knowledge. "
                    "Returns relevant results with context and relevance scores."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": (
                                "Search query to find relevant information in team memory. "
                                "Examples: 'authentication errors', 'API endpoints'"
                            ),
                        },
                        "limit": {
                            "type": "integer",
                            "minimum": 1,
                            "maximum": self.config.search.max_limit,
                            "description": (
                                f"Maximum number of results to return "
                                f"(default: {self.config.search.default_limit}, "
                                f"max: {self.config.search.max_limit})"
                            ),
                        },
                    },
                    "required": ["query"],
                },
            ),
            Tool(
                name=STORE_TOOL,
                description=(
                    "💾 Store information, decisions, code snippets, or knowledge in team-shared "
                    "memory. First-person content is rewritten to name the author."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "content": {
                            "type": "string",
                            "description": "The information to store. Be specific and detailed.",
                        },
                        "title": {
                            "type": "string",
                            "description": "A clear, descriptive title for this memory entry.",
                        },
                        "tags": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Optional tags for organization and searchability.",
                        },
                    },
                    "required": ["content", "title"],
                },
            ),
            Tool(
                name=PROFILE_TOOL,
                description="👤 Get the facts team memory has collected about a team member.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "identity": {
                            "type": "string",
                            "description": "Team member to look up. Defaults to the configured user.",
                        },
                    },
                },
            ),
            Tool(
                name=STATUS_TOOL,
                description="⚙️ Report whether team memory is configured and which identity it uses.",
                inputSchema={"type": "object", "properties": {}},
            ),
        ]

    async def dispatch(self, name: str, arguments: Optional[Dict[str, Any]]) -> List[TextContent]:
        """
        Route a tool call to its handler.

        Raises:
            ValidationError: Unknown tool or malformed arguments
            ConfigurationError: No API key configured
            RemoteError: The Supermemory API call failed
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise ValidationError(f"Unknown tool: {name}")

        logger.debug(f"Tool call: {name}", tool=name)
        with TimedOperation(f"tool {name}", logger, {"tool": name}):
            return await handler(arguments or {})

    def _validate(self, model: Type[RequestT], arguments: Dict[str, Any]) -> RequestT:
        try:
            return model(**arguments)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            raise ValidationError(f"Invalid argument '{field}': {first.get('msg')}", field=field) from e

    @log_tool_errors(SEARCH_TOOL)
    async def _handle_search(self, arguments: Dict[str, Any]) -> List[TextContent]:
        request = self._validate(SearchRequest, arguments)
        limit = request.limit or self.config.search.default_limit
        if limit > self.config.search.max_limit:
            raise ValidationError(
                f"Invalid argument 'limit': must be at most {self.config.search.max_limit}",
                field="limit",
            )

        records = await self.client.search(request.query, limit)
        return _text(self.render_search(request.query, records))

    @log_tool_errors(STORE_TOOL)
    async def _handle_store(self, arguments: Dict[str, Any]) -> List[TextContent]:
        request = self._validate(StoreRequest, arguments)
        memory_id = await self.client.store(request.content, request.title, request.tags)
        return _text(self.render_store(request, memory_id))

    @log_tool_errors(PROFILE_TOOL)
    async def _handle_profile(self, arguments: Dict[str, Any]) -> List[TextContent]:
        request = self._validate(ProfileRequest, arguments)
        identity = request.identity or self.config.user.default_user_id
        profile = await self.client.get_profile(identity)
        return _text(self.render_profile(identity, profile))

    async def _handle_status(self, arguments: Dict[str, Any]) -> List[TextContent]:
        return _text(self.render_status())

    def render_search(self, query: str, records: List[MemoryRecord]) -> str:
        t = self.messages.t
        if not records:
            return t("search_no_results", query=query)

        separator = "\n\n" + "─" * 50 + "\n\n"
        entries = []
        for index, record in enumerate(records, 1):
            entries.append("\n".join([
                t("result_title", index=index, title=record.title or t("untitled")),
                f"📝 {record.content}",
                t("result_tags", tags=", ".join(record.tags) or t("tags_none")),
                t("result_relevance", score=f"{record.score * 100:.1f}"),
            ]))

        noun = t("search_entry_one") if len(records) == 1 else t("search_entry_many")
        return (
            f"{t('search_header', query=query)}\n\n"
            f"{t('search_found', count=len(records), entries=noun)}\n\n"
            f"{separator.join(entries)}\n\n"
            f"{t('search_tip')}"
        )

    def render_store(self, request: StoreRequest, memory_id: str) -> str:
        t = self.messages.t
        if request.tags:
            suggestions = request.tags[:3]
        else:
            suggestions = request.title.split()[:3]

        lines = [
            t("store_header"),
            "",
            f"📝 **{request.title}**",
            f"📄 {request.content}",
            t("result_tags", tags=", ".join(request.tags) or t("tags_none")),
            t("store_memory_id", id=memory_id),
            "",
        ]
        if self.config.personalization.enabled:
            lines.append(t("store_note", user=self.config.user.default_user_id))
        lines.append(t("store_suggestions", suggestions=", ".join(suggestions)))
        return "\n".join(lines)

    def render_profile(self, identity: str, profile: UserProfile) -> str:
        t = self.messages.t
        lines = [t("profile_header", user=identity), ""]
        if profile.is_empty:
            lines.append(t("profile_empty"))
            return "\n".join(lines)

        if profile.static_facts:
            lines.append(t("profile_static"))
            lines.extend(f"• {fact}" for fact in profile.static_facts)
            lines.append("")
        if profile.dynamic_facts:
            lines.append(t("profile_dynamic"))
            lines.extend(f"• {fact}" for fact in profile.dynamic_facts)
        return "\n".join(lines).rstrip()

    def render_status(self) -> str:
        t = self.messages.t
        personalization = self.config.personalization
        if personalization.enabled:
            personalization_text = ", ".join(personalization.languages)
        else:
            personalization_text = t("disabled")

        lines = [
            t("status_header"),
            "",
            t("status_configured", value=t("yes") if self.client.is_configured else t("no")),
            t("status_base_url", value=self.config.supermemory.base_url),
            t("status_user", value=self.config.user.default_user_id),
            t("status_language", value=self.config.user.language),
            t("status_personalization", value=personalization_text),
        ]
        if not self.client.is_configured:
            lines.extend(["", t("api_key_guidance")])
        return "\n".join(lines)

    async def run(self) -> None:
        """Serve MCP over stdio until the client disconnects."""
        logger.info(
            f"Team memory MCP server {__version__} running on stdio",
            configured=self.client.is_configured,
        )
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            await self.client.aclose()


async def main(config_file: Optional[str] = None) -> None:
    """Main entry point: load configuration once, then serve."""
    config = ConfigManager(config_file).load_config()
    setup_logging(config.logging)
    if not config.is_configured:
        logger.warning("SUPERMEMORY_API_KEY is not set; memory tools will report a configuration error")
    await TeamMemoryServer(config).run()


def run(config_file: Optional[str] = None) -> None:
    """Synchronous wrapper for console scripts."""
    asyncio.run(main(config_file))
