"""
Document model exchanged with the host framework.

A document is text plus optional metadata. Its record id is the MD5 of
its canonical JSON form, so identical text+metadata always maps to the
same row and any change (metadata included) maps to a new one.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Document:
    """A single text document with optional metadata."""

    content: str
    metadata: dict[str, Any] | None = field(default=None)

    @classmethod
    def from_text(cls, text: str | None, metadata: dict[str, Any] | None = None) -> "Document":
        return cls(content=text or "", metadata=metadata)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        """Build from the host framework's ``{"content": [{"text": ...}]}`` shape."""
        parts = data.get("content") or []
        if isinstance(parts, str):
            text = parts
        else:
            text = "".join(part.get("text") or "" for part in parts)
        return cls(content=text, metadata=data.get("metadata"))

    def text(self) -> str:
        return self.content

    def to_dict(self) -> dict[str, Any]:
        """Convert to the host framework's document JSON shape."""
        data: dict[str, Any] = {"content": [{"text": self.content}]}
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data

    def canonical_json(self) -> str:
        return json.dumps(
            self.to_dict(),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            default=str,
        )

    def content_hash(self) -> str:
        """MD5 hex digest of the canonical JSON form; used as record id."""
        return hashlib.md5(self.canonical_json().encode("utf-8")).hexdigest()


def coerce_document(value: Any) -> Document:
    """Accept a Document, plain text, or a document dict."""
    if isinstance(value, Document):
        return value
    if isinstance(value, str):
        return Document.from_text(value)
    if isinstance(value, dict):
        return Document.from_dict(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to Document")
