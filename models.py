"""
Data models for saved searches
Using Pydantic for validation and serialization

A saved search belongs to exactly one library and is addressed by a stable
8-character key. Its definition is an ordered list of conditions.
"""

import re
import secrets
from datetime import datetime
from typing import Optional, List, Set, Any

from pydantic import BaseModel, Field, PrivateAttr, field_validator, ConfigDict


# ============================================================================
# Keys
# ============================================================================

KEY_CHARS = "23456789ABCDEFGHIJKLMNPQRSTUVWXYZ"
KEY_LENGTH = 8
_KEY_RE = re.compile(rf"^[{KEY_CHARS}]{{{KEY_LENGTH}}}$")

# Splits "field/mode"; both sides must be non-empty
_CONDITION_MODE_RE = re.compile(r"^([^/]+)/(.+)$")


def generate_key() -> str:
    """Generate a random object key"""
    return "".join(secrets.choice(KEY_CHARS) for _ in range(KEY_LENGTH))


def is_valid_key(key: Any) -> bool:
    return isinstance(key, str) and bool(_KEY_RE.match(key))


# ============================================================================
# Listing parameters
# ============================================================================

FORMAT_KEYS = "keys"
FORMAT_VERSIONS = "versions"
FORMAT_JSON = "json"


class SearchParams(BaseModel):
    """Parameters for listing a library's saved searches (wire names as aliases)"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    format: str = FORMAT_JSON
    search_ids: List[int] = Field(default_factory=list, alias="searchIDs")
    search_keys: List[str] = Field(default_factory=list, alias="searchKey")
    since: Optional[int] = Field(None, ge=0, description="Only searches with version > since")
    sincetime: Optional[float] = Field(None, ge=0, description="Unix timestamp; searches modified at or after")
    sort: Optional[str] = None
    direction: Optional[str] = None
    limit: Optional[int] = Field(None, ge=0)
    start: Optional[int] = Field(None, ge=0)

    @field_validator('format', mode='before')
    @classmethod
    def validate_format(cls, v):
        # Anything but keys/versions (atom, bib, ...) lists full objects
        if v in (FORMAT_KEYS, FORMAT_VERSIONS):
            return v
        return FORMAT_JSON

    @field_validator('search_keys', 'search_ids', mode='before')
    @classmethod
    def split_list(cls, v):
        # Query strings carry lists as "A,B,C"
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(',') if part.strip()]
        return v

    @field_validator('direction', mode='before')
    @classmethod
    def normalize_direction(cls, v):
        if v is None or v == "":
            return None
        if not isinstance(v, str) or v.upper() not in ("ASC", "DESC"):
            raise ValueError("direction must be 'asc' or 'desc'")
        return v.upper()


# ============================================================================
# Saved searches
# ============================================================================

class SearchCondition(BaseModel):
    """One filter term of a saved search"""
    condition: str = Field(..., min_length=1)
    mode: str = ""
    operator: str = Field(..., min_length=1)
    value: str = ""

    @classmethod
    def from_json(cls, data: dict) -> "SearchCondition":
        """Build from a validated JSON condition, parsing 'mode' out of 'condition'"""
        condition = data["condition"]
        mode = ""
        match = _CONDITION_MODE_RE.match(condition)
        if match:
            condition, mode = match.group(1), match.group(2)
        return cls(condition=condition, mode=mode, operator=data["operator"], value=data["value"])

    def to_json(self) -> dict:
        condition = f"{self.condition}/{self.mode}" if self.mode else self.condition
        return {"condition": condition, "operator": self.operator, "value": self.value}


class SavedSearch(BaseModel):
    """Saved search entity. Tracks which editable fields changed since load."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    library_id: int
    key: Optional[str] = None
    name: Optional[str] = None
    version: int = 0
    date_added: Optional[datetime] = None
    date_modified: Optional[datetime] = None
    conditions: List[SearchCondition] = Field(default_factory=list)

    _changed: Set[str] = PrivateAttr(default_factory=set)

    @property
    def exists(self) -> bool:
        return self.id is not None

    def set_key(self, key: str):
        if key == self.key:
            return
        if self.exists:
            raise ValueError(f"Cannot change key of existing saved search {self.key}")
        self.key = key
        self._changed.add("key")

    def set_name(self, name: str):
        if name == self.name:
            return
        self.name = name
        self._changed.add("name")

    def update_conditions(self, conditions: List[SearchCondition]) -> bool:
        """Replace the whole condition list. Returns True if it differs."""
        if conditions == self.conditions:
            return False
        self.conditions = list(conditions)
        self._changed.add("conditions")
        return True

    def has_changed(self, field: Optional[str] = None) -> bool:
        if field is None:
            return bool(self._changed)
        return field in self._changed

    def mark_saved(self):
        self._changed.clear()

    def to_json(self) -> dict:
        """Editable representation, accepted back by update_from_json"""
        return {
            "key": self.key,
            "version": self.version,
            "name": self.name,
            "conditions": [c.to_json() for c in self.conditions],
        }

    def to_response_json(self) -> dict:
        """Full representation including server-managed properties"""
        data = self.to_json()
        data["dateAdded"] = self.date_added.isoformat() if self.date_added else None
        data["dateModified"] = self.date_modified.isoformat() if self.date_modified else None
        return {
            "key": self.key,
            "version": self.version,
            "library": {"id": self.library_id},
            "data": data,
        }
