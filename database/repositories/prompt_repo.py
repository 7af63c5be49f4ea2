"""Prompt template repository for the prompt_templates collection."""
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase


class PromptTemplateRepository:
    """Stored overrides for the built-in prompt templates."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.prompt_templates

    async def get_template(self, role: str) -> Optional[str]:
        """Stored prompt text for a role, or None when not overridden."""
        doc = await self.collection.find_one({"role": role})
        if doc and doc.get("prompt"):
            return doc["prompt"]
        return None
