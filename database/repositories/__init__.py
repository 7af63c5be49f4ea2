"""MongoDB repositories, one per collection."""
from database.repositories.content_repo import ContentRepository
from database.repositories.persona_repo import PersonaRepository
from database.repositories.prompt_repo import PromptTemplateRepository
from database.repositories.source_item_repo import SourceItemRepository

__all__ = [
    "ContentRepository",
    "PersonaRepository",
    "PromptTemplateRepository",
    "SourceItemRepository",
]
