from __future__ import annotations

"""Site profiles for the portals the scraper knows how to walk.

Source ids name the output directory and appear in logs and summaries, so
treat them as stable identifiers.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

LOGGER = logging.getLogger("camara")

PROPOSITURAS = "proposituras"
COMPLEMENTO_LEGISLATIVO = "complemento_legislativo"

DEFAULT_SOURCE = PROPOSITURAS
ALL_SOURCES = (PROPOSITURAS, COMPLEMENTO_LEGISLATIVO)

# Listing items carry only a detail link / a detail link plus a direct PDF.
LISTING_DETAIL = "detail"
LISTING_DETAIL_AND_PDF = "detail_and_pdf"

# The detail page is printed by the browser / offered through an export link.
PAGE_PDF_RENDER = "render"
PAGE_PDF_EXPORT_LINK = "export_link"


@dataclass(frozen=True)
class KindRule:
    """Map link text containing ``pattern`` (case-insensitive) to a file kind."""

    pattern: str
    kind: str


# First match wins; links matching nothing are treated as PDFs.
DEFAULT_KIND_RULES: Tuple[KindRule, ...] = (
    KindRule("modelo_requerimento", "doc"),
    KindRule("documento assinado", "pdf"),
)
DEFAULT_KIND = "pdf"


@dataclass(frozen=True)
class SourceProfile:
    name: str
    listing_url_template: str
    listing_ready_selector: str
    listing_kind: str
    page_pdf_mode: str
    detail_wait_until: str = "load"
    listing_item_selector: str = ""
    attachment_row_selector: str = ""
    export_pdf_selector: str = ""
    kind_rules: Tuple[KindRule, ...] = DEFAULT_KIND_RULES
    default_kind: str = DEFAULT_KIND

    @property
    def output_dirname(self) -> str:
        return self.name

    def listing_url(self, page_number: int) -> str:
        return self.listing_url_template.format(page=int(page_number))


PROPOSITURAS_PROFILE = SourceProfile(
    name=PROPOSITURAS,
    listing_url_template=(
        "https://rioclaro.siscam.com.br/Documentos/Pesquisa?Pesquisa=Avancada&id=80"
        "&pagina={page}&Modulo=8&Documento=0&Numeracao=Documento&NumeroInicial="
        "&AnoInicial=&DataInicial=&NumeroFinal=&AnoFinal=&DataFinal=&Situacao=0"
        "&TipoAutor=Todos&AutoriaId=0&Iniciativa=Nenhum&NoTexto=false&Assunto=a"
        "&Observacoes="
    ),
    listing_ready_selector=".data-list-item",
    listing_item_selector=".data-list-item h4 a",
    listing_kind=LISTING_DETAIL,
    page_pdf_mode=PAGE_PDF_RENDER,
    attachment_row_selector=".table-striped tbody tr",
)

COMPLEMENTO_LEGISLATIVO_PROFILE = SourceProfile(
    name=COMPLEMENTO_LEGISLATIVO,
    listing_url_template=(
        "https://legislacaodigital.com.br/RioClaro-SP?Pagina={page}&Pesquisa=Avancada"
        "&TipoId=0&Numero=&Ano=&Data=&NumeroFinal=&AnoFinal=&DataFinal=&SituacaoId=0"
        "&ClassificacaoId=0&EmentaAssunto=a&PaginaCount=20&NoTexto=false"
    ),
    listing_ready_selector=".float-left.col-md-9",
    listing_item_selector=".normas-lista",
    listing_kind=LISTING_DETAIL_AND_PDF,
    page_pdf_mode=PAGE_PDF_EXPORT_LINK,
    detail_wait_until="networkidle",
    export_pdf_selector='a[href*="?Export=Pdf"]',
)

PROFILES = {
    PROPOSITURAS: PROPOSITURAS_PROFILE,
    COMPLEMENTO_LEGISLATIVO: COMPLEMENTO_LEGISLATIVO_PROFILE,
}

_PROPOSITURAS_ALIASES = {"proposituras", "propositura", "siscam", "documentos"}
_COMPLEMENTO_ALIASES = {
    "complemento_legislativo",
    "complemento-legislativo",
    "complemento",
    "legislacao",
    "normas",
}


def normalize_source(value: str | None) -> str:
    """Return a canonical source id; unknown or empty values map to the default."""

    if not value:
        return DEFAULT_SOURCE

    raw = value.strip().lower()
    if raw in _PROPOSITURAS_ALIASES:
        return PROPOSITURAS
    if raw in _COMPLEMENTO_ALIASES:
        return COMPLEMENTO_LEGISLATIVO
    return DEFAULT_SOURCE


def coerce_source(raw: str | None) -> str:
    """Normalise a raw source value, warning when it falls back to the default."""

    if not raw:
        return DEFAULT_SOURCE

    normalized = normalize_source(raw)
    if normalized == DEFAULT_SOURCE and raw.strip().lower() not in _PROPOSITURAS_ALIASES:
        LOGGER.warning("[SOURCES][WARN] Unknown source %r; using default.", raw)
    return normalized


def get_profile(source: str | None) -> SourceProfile:
    return PROFILES[normalize_source(source)]


__all__ = [
    "PROPOSITURAS",
    "COMPLEMENTO_LEGISLATIVO",
    "DEFAULT_SOURCE",
    "ALL_SOURCES",
    "LISTING_DETAIL",
    "LISTING_DETAIL_AND_PDF",
    "PAGE_PDF_RENDER",
    "PAGE_PDF_EXPORT_LINK",
    "KindRule",
    "DEFAULT_KIND_RULES",
    "DEFAULT_KIND",
    "SourceProfile",
    "PROPOSITURAS_PROFILE",
    "COMPLEMENTO_LEGISLATIVO_PROFILE",
    "PROFILES",
    "normalize_source",
    "coerce_source",
    "get_profile",
]
