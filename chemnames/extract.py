from typing import Any, Mapping, Optional

# Checked in order; the first non-empty string wins.
IDENTIFIER_FIELDS = ["smiles", "smi_string"]
META_FIELD = "meta"
META_IDENTIFIER_FIELD = "ori_smiles"

ENTRY_ID_FIELDS = ["id", "generation_id"]


def _clean_str(v: Any) -> Optional[str]:
    if isinstance(v, str) and v.strip() != "":
        return v.strip()
    return None


def extract_identifier(entry: Mapping[str, Any]) -> Optional[str]:
    """
    Pick the SMILES identifier of a history entry.

    Priority: direct field, alternate field, then the nested metadata field.
    Returns None when the entry carries no usable identifier; callers show a
    positional placeholder in that case.
    """
    if not isinstance(entry, Mapping):
        return None

    for f in IDENTIFIER_FIELDS:
        value = _clean_str(entry.get(f))
        if value:
            return value

    meta = entry.get(META_FIELD)
    if isinstance(meta, Mapping):
        return _clean_str(meta.get(META_IDENTIFIER_FIELD))
    return None


def extract_entry_id(entry: Mapping[str, Any]) -> Optional[Any]:
    """Return the opaque entry id (`id`, else `generation_id`)."""
    if not isinstance(entry, Mapping):
        return None
    for f in ENTRY_ID_FIELDS:
        value = entry.get(f)
        if value is not None and value != "":
            return value
    return None


def placeholder_label(position: int) -> str:
    """Label for a row without an identifier (0-based position in)."""
    return f"History {position + 1}"
