"""
User-facing strings for tool responses, in English and Spanish.

Lookups fall back to English, then to the key itself, so a missing
translation never breaks a response.
"""

import logging
from typing import Dict, List

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "en": {
        "user_saved": "User {user} saved:",
        "api_key_not_configured": "Supermemory API key not configured.",
        "api_key_guidance": (
            "To enable team memory:\n"
            "1. Get an API key from https://supermemory.ai\n"
            "2. Set the SUPERMEMORY_API_KEY environment variable\n"
            "3. Restart the MCP server"
        ),
        "search_header": "🔍 **Team Memory Search Results for \"{query}\"**",
        "search_found": "Found {count} relevant memory {entries}:",
        "search_entry_one": "entry",
        "search_entry_many": "entries",
        "search_no_results": (
            "🔍 **Team Memory Search Results**\n\n"
            "No information found for query: \"{query}\"\n\n"
            "💡 **Suggestions:**\n"
            "• Try more specific terms\n"
            "• Use broader search terms\n"
            "• Check if the information was recently added (it may take 1-2 minutes to index)"
        ),
        "result_title": "📄 **Result {index}: {title}**",
        "result_tags": "🏷️ Tags: {tags}",
        "result_relevance": "🎯 Relevance: {score}%",
        "search_tip": "💡 **Pro tip:** Use specific keywords from these results to find related information!",
        "tags_none": "none",
        "untitled": "Untitled",
        "store_header": "✅ **Team Memory Stored Successfully!**",
        "store_memory_id": "🆔 Memory ID: {id}",
        "store_note": (
            "💡 **Note:** Content was personalized with your name ({user}). "
            "It will be searchable by team members 1-2 minutes after processing."
        ),
        "store_suggestions": "🔍 **Search suggestions:** {suggestions}",
        "profile_header": "👤 **Team Memory Profile for {user}**",
        "profile_static": "📌 **Static facts:**",
        "profile_dynamic": "🔄 **Recent context:**",
        "profile_empty": "No profile information is available yet.",
        "status_header": "⚙️ **Team Memory Status**",
        "status_configured": "Configured: {value}",
        "status_base_url": "API base URL: {value}",
        "status_user": "Identity: {value}",
        "status_language": "Language: {value}",
        "status_personalization": "Personalization: {value}",
        "yes": "yes",
        "no": "no",
        "disabled": "disabled",
    },
    "es": {
        "user_saved": "El usuario {user} guardó:",
        "api_key_not_configured": "La API key de Supermemory no está configurada.",
        "api_key_guidance": (
            "Para habilitar la memoria del equipo:\n"
            "1. Obtén una API key en https://supermemory.ai\n"
            "2. Define la variable de entorno SUPERMEMORY_API_KEY\n"
            "3. Reinicia el servidor MCP"
        ),
        "search_header": "🔍 **Resultados de búsqueda en la memoria del equipo para \"{query}\"**",
        "search_found": "Se encontraron {count} {entries}:",
        "search_entry_one": "entrada relevante",
        "search_entry_many": "entradas relevantes",
        "search_no_results": (
            "🔍 **Resultados de búsqueda en la memoria del equipo**\n\n"
            "No se encontró información para: \"{query}\"\n\n"
            "💡 **Sugerencias:**\n"
            "• Usa términos más específicos\n"
            "• Usa términos de búsqueda más amplios\n"
            "• Verifica si la información se agregó hace poco (puede tardar 1-2 minutos en indexarse)"
        ),
        "result_title": "📄 **Resultado {index}: {title}**",
        "result_tags": "🏷️ Etiquetas: {tags}",
        "result_relevance": "🎯 Relevancia: {score}%",
        "search_tip": "💡 **Consejo:** Usa palabras clave de estos resultados para encontrar información relacionada.",
        "tags_none": "ninguna",
        "untitled": "Sin título",
        "store_header": "✅ **¡Memoria del equipo guardada!**",
        "store_memory_id": "🆔 ID de memoria: {id}",
        "store_note": (
            "💡 **Nota:** El contenido se personalizó con tu nombre ({user}). "
            "Podrá buscarse 1-2 minutos después de procesarse."
        ),
        "store_suggestions": "🔍 **Sugerencias de búsqueda:** {suggestions}",
        "profile_header": "👤 **Perfil en la memoria del equipo de {user}**",
        "profile_static": "📌 **Datos permanentes:**",
        "profile_dynamic": "🔄 **Contexto reciente:**",
        "profile_empty": "Todavía no hay información de perfil.",
        "status_header": "⚙️ **Estado de la memoria del equipo**",
        "status_configured": "Configurado: {value}",
        "status_base_url": "URL base de la API: {value}",
        "status_user": "Identidad: {value}",
        "status_language": "Idioma: {value}",
        "status_personalization": "Personalización: {value}",
        "yes": "sí",
        "no": "no",
        "disabled": "desactivada",
    },
}


class Messages:
    """Message catalog bound to one language."""

    def __init__(self, language: str = DEFAULT_LANGUAGE):
        if language not in TRANSLATIONS:
            logger.warning(f"Unsupported language '{language}', falling back to {DEFAULT_LANGUAGE}")
            language = DEFAULT_LANGUAGE
        self.language = language

    def t(self, key: str, **variables) -> str:
        """Translate ``key`` and substitute ``{name}`` variables."""
        template = (
            TRANSLATIONS[self.language].get(key)
            or TRANSLATIONS[DEFAULT_LANGUAGE].get(key)
            or key
        )
        for name, value in variables.items():
            template = template.replace(f"{{{name}}}", str(value))
        return template


def available_languages() -> List[str]:
    """Languages with a translation catalog."""
    return list(TRANSLATIONS)
