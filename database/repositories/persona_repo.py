"""Persona repository for the personas collection."""
from typing import Optional, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase


class PersonaRepository:
    """Read access to author personas."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.personas

    async def get_active(self, persona_id: str) -> Optional[Dict[str, Any]]:
        """Get a persona by ID if it is active."""
        return await self.collection.find_one({"_id": persona_id, "is_active": True})
