"""Records produced by a scrape and persisted in the document index."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ListingItem:
    """One document as it appears on a listing page."""

    title: str
    detail_url: str
    pdf_url: Optional[str] = None


@dataclass(frozen=True)
class AttachmentLink:
    """A downloadable link discovered on a detail page."""

    text: str
    href: str
    kind: str


@dataclass(frozen=True)
class Attachment:
    kind: str
    path: str

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "path": self.path}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Attachment":
        kind = data.get("kind", data.get("tipo", ""))
        path = data.get("path", data.get("caminho", ""))
        return cls(kind=str(kind or ""), path=str(path or ""))


@dataclass(frozen=True)
class DocumentRecord:
    """Everything saved for one document, keyed by the listing page it came from."""

    title: str
    folder_path: str
    primary_pdf_path: str
    page_number: int
    attachments: Tuple[Attachment, ...] = field(default_factory=tuple)
    detail_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "folder": self.folder_path,
            "pdf": self.primary_pdf_path,
            "attachments": [attachment.to_dict() for attachment in self.attachments],
            "page": self.page_number,
            "detail_url": self.detail_url,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DocumentRecord":
        """Build a record from the index JSON.

        Legacy indexes use Portuguese keys
        (``titulo``, ``pasta``, ``documentos``, ``pagina``); those are accepted
        too. Raises ``KeyError``/``ValueError``/``TypeError`` on malformed input.
        """

        if "page" in data:
            page_number = int(data["page"])
        else:
            page_number = int(data["pagina"])

        title = data.get("title", data.get("titulo"))
        if title is None:
            raise KeyError("title")

        raw_attachments = data.get("attachments", data.get("documentos")) or []
        if not isinstance(raw_attachments, list):
            raise TypeError("attachments must be a list")
        attachments = [Attachment.from_dict(item) for item in raw_attachments]

        # Legacy complemento_legislativo records kept the two
        # PDFs under their own keys.
        primary = data.get("pdf", data.get("pagina_pdf")) or ""
        direct = data.get("pdf_direto")
        if direct and not raw_attachments:
            attachments.append(Attachment(kind="pdf", path=str(direct)))

        return cls(
            title=str(title),
            folder_path=str(data.get("folder", data.get("pasta", "")) or ""),
            primary_pdf_path=str(primary),
            page_number=page_number,
            attachments=tuple(attachments),
            detail_url=str(data.get("detail_url", data.get("manucristoLink", "")) or ""),
        )


__all__ = ["ListingItem", "AttachmentLink", "Attachment", "DocumentRecord"]
