"""Organization domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4


@dataclass
class Organization:
    """Domain entity for a customer organization."""

    name: str
    id: UUID = field(default_factory=uuid4)
    slug: str = ""
    created_at: datetime = field(default_factory=datetime.utcnow)
