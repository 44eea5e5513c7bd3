# src/accountlink/schemas/principal.py

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field


ROLE_USER = "ROLE_USER"


class OAuth2Principal(BaseModel):
    """
    The resolved identity handed back to the session layer.

    attributes carries the provider payload with email / name / avatar_url
    replaced by the persisted User's values. name_attribute_key names the
    attribute that uniquely identifies the principal.
    """

    user_id: Optional[UUID] = None
    authorities: List[str] = Field(default_factory=lambda: [ROLE_USER])
    attributes: Dict[str, Any] = Field(default_factory=dict)
    name_attribute_key: str = "email"

    @computed_field  # type: ignore[misc]
    @property
    def name(self) -> Optional[str]:
        value = self.attributes.get(self.name_attribute_key)
        return None if value is None else str(value)
