"""PubMed E-utilities XML parsing."""

import logging

from lxml import etree

from ..records import PubMedRecord

logger = logging.getLogger(__name__)


def parse_document(xml: str | bytes) -> etree._Element:
    """Parse an E-utilities XML response body into its root element."""
    if isinstance(xml, str):
        xml = xml.encode("utf-8")
    parser = etree.XMLParser(resolve_entities=False, no_network=True, recover=False)
    return etree.fromstring(xml, parser=parser)


def parse_id_list(xml: str | bytes) -> list[str]:
    """Extract PMIDs from an ESearch response, in server order."""
    root = parse_document(xml)
    return [el.text.strip() for el in root.findall(".//IdList/Id") if el.text and el.text.strip()]


def iter_articles(root: etree._Element) -> list[etree._Element]:
    """Return every <PubmedArticle> under an EFetch response root."""
    return root.findall(".//PubmedArticle")


def parse_article(article: etree._Element) -> PubMedRecord | None:
    """
    Parse a single <PubmedArticle> into a PubMedRecord.

    Returns None if the PMID or title is missing.
    """
    pmid = _get_text(article, "MedlineCitation/PMID") or _get_text(article, ".//PMID")
    title = _full_text(article.find(".//ArticleTitle"))

    if not pmid or not title:
        logger.debug(f"Skipping article without PMID or title (PMID: {pmid or 'unknown'})")
        return None

    abstract_parts = [_full_text(el) for el in article.findall(".//Abstract/AbstractText")]
    abstract = " ".join(part for part in abstract_parts if part)

    return PubMedRecord(
        native_id=pmid,
        title=title,
        abstract=abstract,
        authors=parse_authors(article, pmid),
        publication_date=parse_publication_date(article),
        venue=_get_text(article, ".//Journal/Title") or "",
        doi=parse_doi(article),
    )


def parse_authors(article: etree._Element, pmid: str) -> list[str]:
    """
    Parse the author list as "LastName ForeName" display names.

    Authors with neither a surname nor a given name (collective names, empty
    entries) are skipped individually.
    """
    authors = []
    for position, author in enumerate(article.findall(".//AuthorList/Author"), start=1):
        last_name = _get_text(author, "LastName") or ""
        fore_name = _get_text(author, "ForeName") or ""

        if not last_name and not fore_name:
            logger.debug(f"Skipping author without a name (PMID: {pmid}, position: {position})")
            continue

        authors.append(f"{last_name} {fore_name}".strip())

    return authors


def parse_publication_date(article: etree._Element) -> str:
    """Join PubDate Year, Month and Day with spaces, omitting absent parts."""
    pub_date = article.find(".//JournalIssue/PubDate")
    if pub_date is None:
        pub_date = article.find(".//PubDate")
    if pub_date is None:
        return ""

    tokens = [_get_text(pub_date, tag) for tag in ("Year", "Month", "Day")]
    return " ".join(token for token in tokens if token)


def parse_doi(article: etree._Element) -> str | None:
    """
    Return the article's own DOI, if present.

    Only the article-level ArticleIdList and ELocationID are consulted; ids in
    PubmedData/ReferenceList belong to cited papers.
    """
    for article_id in article.findall("PubmedData/ArticleIdList/ArticleId"):
        if article_id.get("IdType") == "doi" and article_id.text and article_id.text.strip():
            return article_id.text.strip()

    for location in article.findall("MedlineCitation/Article/ELocationID"):
        if location.get("EIdType") == "doi" and location.text and location.text.strip():
            return location.text.strip()

    return None


# Helper functions

def _get_text(element: etree._Element | None, xpath: str) -> str | None:
    """Safely extract stripped text content from a child element."""
    if element is None:
        return None

    child = element.find(xpath)
    if child is not None and child.text:
        return child.text.strip() or None
    return None


def _full_text(element: etree._Element | None) -> str:
    """Text of an element including inline markup children (<i>, <sup>, ...)."""
    if element is None:
        return ""
    return " ".join("".join(element.itertext()).split())
