"""Content fingerprints for draft/published change detection."""

import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional
from uuid import UUID

from draftsync.domains.publishing.tables import TABLES

# Never part of a fingerprint, whatever the entity type
BOOKKEEPING_FIELDS = frozenset(
    {"id", "is_published", "created_at", "updated_at", "deleted_at", "content_hash"}
)


class ContentFingerprinter:
    """Computes stable SHA-256 fingerprints of an entity's meaningful fields.

    Handles:
    - Field selection per entity type (the record's ``HASH_FIELDS``)
    - Stable serialization independent of key insertion order
    - Canonical placeholders for values that do not serialize

    The function is pure: the same input always yields the same digest,
    across processes and restarts.
    """

    def fingerprint(self, entity_type: str, fields: Mapping[str, Any]) -> str:
        """Fingerprint the meaningful fields of an entity.

        Args:
            entity_type: Table name of the entity (e.g. ``pages``). Known types
                hash only their declared fields; unknown types hash every
                non-bookkeeping field given.
            fields: Field values, usually a full row.

        Returns:
            SHA256 hex digest
        """
        return self._compute_dict_hash(self._select_fields(entity_type, fields))

    def fingerprint_row(self, table: str, row: Mapping[str, Any]) -> str:
        """Fingerprint a raw row of ``table``."""
        return self.fingerprint(table, row)

    def effective_hash(self, table: str, row: Optional[Mapping[str, Any]]) -> Optional[str]:
        """Stored ``content_hash`` of a row, or a freshly computed one for legacy rows.

        Returns None when there is no row.
        """
        if row is None:
            return None
        stored = row.get("content_hash")
        if stored:
            return stored
        return self.fingerprint_row(table, row)

    def differs(
        self,
        table: str,
        draft: Mapping[str, Any],
        published: Optional[Mapping[str, Any]],
    ) -> bool:
        """True when the published copy is missing or its fingerprint differs."""
        if published is None:
            return True
        return self.effective_hash(table, draft) != self.effective_hash(table, published)

    # ------------------------------------------------------------------------------------
    # Serialization and Hashing
    # ------------------------------------------------------------------------------------

    @staticmethod
    def _select_fields(entity_type: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        spec = TABLES.get(entity_type)
        if spec is not None:
            return spec.record.hash_input(fields)
        return {k: v for k, v in fields.items() if k not in BOOKKEEPING_FIELDS}

    def _compute_dict_hash(self, content_dict: dict) -> str:
        """Compute SHA256 hash of a dictionary with stable serialization.

        Args:
            content_dict: Dictionary to hash

        Returns:
            Hex digest of SHA256 hash
        """
        stable_data = self._stable_serialize(content_dict)
        json_str = json.dumps(stable_data, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(json_str.encode()).hexdigest()

    @staticmethod
    def _stable_serialize(obj: Any, _seen: Optional[frozenset] = None) -> Any:
        """Recursively serialize object in a stable way for hashing.

        Args:
            obj: Object to serialize

        Returns:
            JSON-compatible structure with stable ordering. Cycles and values
            without a usable string form become placeholders.
        """
        seen = _seen or frozenset()
        if isinstance(obj, (dict, list, tuple, set, frozenset)):
            if id(obj) in seen:
                return "<cycle>"
            seen = seen | {id(obj)}

        if isinstance(obj, dict):
            items = {_key(k): v for k, v in obj.items()}
            return {
                k: ContentFingerprinter._stable_serialize(v, seen) for k, v in sorted(items.items())
            }
        elif isinstance(obj, (list, tuple)):
            return [ContentFingerprinter._stable_serialize(x, seen) for x in obj]
        elif isinstance(obj, (set, frozenset)):
            members = [ContentFingerprinter._stable_serialize(x, seen) for x in obj]
            return sorted(members, key=lambda m: json.dumps(m, sort_keys=True, default=str))
        elif isinstance(obj, float) and obj != obj:
            return "<nan>"
        elif isinstance(obj, (str, int, float, bool, type(None))):
            return obj
        elif isinstance(obj, Enum):
            return ContentFingerprinter._stable_serialize(obj.value, seen)
        elif isinstance(obj, (datetime, date)):
            return obj.isoformat()
        elif isinstance(obj, (UUID, Decimal)):
            return str(obj)
        else:
            try:
                return str(obj)
            except Exception:
                return f"<unserializable:{type(obj).__name__}>"


def _key(k: Any) -> str:
    return k if isinstance(k, str) else str(k)


# Singleton instance
fingerprinter = ContentFingerprinter()


def fingerprint(entity_type: str, fields: Mapping[str, Any]) -> str:
    """Module-level shortcut used by editor write paths on every save."""
    return fingerprinter.fingerprint(entity_type, fields)
