import os
import xml.etree.ElementTree as ET
from typing import List, Optional
from urllib.parse import unquote, urlparse

from haven_migrator.models import AttachmentIndex, AttachmentRecord, PostEntry

CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
DC_NS = "http://purl.org/dc/elements/1.1/"
# WXR 1.0 a 1.2 só diferem na URI do namespace "wp"
WP_NAMESPACES = (
    "http://wordpress.org/export/1.2/",
    "http://wordpress.org/export/1.1/",
    "http://wordpress.org/export/1.0/",
)


def _wp_text(item, tag):
    """Retorna o texto do primeiro elemento ``wp:<tag>`` do item, em qualquer versão do WXR."""
    for ns in WP_NAMESPACES:
        element = item.find(f"{{{ns}}}{tag}")
        if element is not None:
            return element.text or ""
    return None


def _text(item, path):
    # elemento vazio (ex.: CDATA vazio) vira "", ausente vira None
    element = item.find(path)
    return (element.text or "") if element is not None else None


def load_export_items(file_path):
    """Lê o export uma única vez e retorna todos os elementos ``item``."""
    tree = ET.parse(file_path)
    return tree.getroot().findall(".//item")


def _title(item):
    title = _text(item, "title")
    return "(untitled)" if title is None else title


def filename_from_url(url: str) -> str:
    """Extrai o nome do arquivo (último segmento do caminho) de uma URL."""
    return unquote(os.path.basename(urlparse(url).path))


def extract_attachments_from_xml(file_path, items=None) -> AttachmentIndex:
    """Extrai os anexos (mídia) de um arquivo de exportação WXR do WordPress.

    Considera apenas itens com ``wp:post_type`` igual a ``attachment``. A URL
    de cada anexo vem de ``wp:attachment_url`` ou, na falta dela, do ``guid``.

    Args:
        file_path (str): O caminho para o arquivo XML.
        items (list, optional): Itens já lidos com :func:`load_export_items`;
            evita analisar o mesmo arquivo mais de uma vez.

    Returns:
        AttachmentIndex: Os anexos indexados pela URL.

    Raises:
        FileNotFoundError: Se o arquivo XML especificado não for encontrado.
        ET.ParseError: Se ocorrer um erro durante a análise do XML.
    """
    by_url = {}
    if items is None:
        items = load_export_items(file_path)
    for item in items:
        if _wp_text(item, "post_type") != "attachment":
            continue
        url = _wp_text(item, "attachment_url") or _text(item, "guid")
        if not url:
            continue
        url = url.strip()
        by_url[url] = AttachmentRecord(url=url, filename=filename_from_url(url))
    return AttachmentIndex(by_url=by_url)


def extract_posts_from_xml(file_path, items=None) -> List[PostEntry]:
    """Extrai posts a partir de um arquivo de exportação WXR do WordPress.

    Considera apenas itens com ``wp:post_type`` igual a ``post``, em qualquer
    status (publicado, privado ou rascunho). As datas são mantidas como o
    texto original do export; a interpretação acontece na importação.

    Args:
        file_path (str): O caminho para o arquivo XML.
        items (list, optional): Itens já lidos com :func:`load_export_items`;
            evita analisar o mesmo arquivo mais de uma vez.

    Returns:
        list: Uma lista de :class:`PostEntry`, na ordem do documento.

    Raises:
        FileNotFoundError: Se o arquivo XML especificado não for encontrado.
        ET.ParseError: Se ocorrer um erro durante a análise do XML.
        ValueError: Se ocorrer um erro durante o processamento de um item do XML.
    """
    posts = []
    if items is None:
        items = load_export_items(file_path)
    for item in items:
        if _wp_text(item, "post_type") != "post":
            continue
        try:
            posts.append(PostEntry(
                title=_title(item),
                status=_wp_text(item, "status"),
                source_date=_wp_text(item, "post_date"),
                modified_date=_wp_text(item, "post_modified"),
                raw_content=_text(item, f"{{{CONTENT_NS}}}encoded"),
                source_author_id=_text(item, f"{{{DC_NS}}}creator") or "",
            ))
        except Exception as e:
            item_id: Optional[str] = _wp_text(item, "post_id") or "unknown"
            raise ValueError(f"Error processing item with ID {item_id} in {file_path}: {e}") from e
    return posts
