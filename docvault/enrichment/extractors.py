import io
import logging
from pdfminer.high_level import extract_pages
from pdfminer.layout import LTTextContainer
from docvault.documents.filetypes import DOCX, PDF

log = logging.getLogger(__name__)


def extract_pdf_text(data: bytes) -> str:
    """Concatenate the text of every text container on every page, last page included."""
    parts = []
    for page_number, page in enumerate(extract_pages(io.BytesIO(data)), start=1):
        for element in page:
            if isinstance(element, LTTextContainer):
                text = element.get_text()
                if text:
                    parts.append(text)
        log.debug("pdf page %d walked", page_number)
    return "".join(parts)


def _block_texts(container, parent):
    """Paragraph texts of a body or table cell in document order, tables included."""
    from docx.oxml.ns import qn
    from docx.table import Table
    from docx.text.paragraph import Paragraph

    for child in container.iterchildren():
        if child.tag == qn("w:p"):
            yield Paragraph(child, parent).text
        elif child.tag == qn("w:tbl"):
            seen = set()
            for row in Table(child, parent).rows:
                for cell in row.cells:
                    # merged cells repeat once per grid position they span
                    if cell._tc in seen:
                        continue
                    seen.add(cell._tc)
                    yield from _block_texts(cell._tc, cell)


def extract_docx_text(data: bytes) -> str:
    import docx

    document = docx.Document(io.BytesIO(data))
    return "\n".join(t for t in _block_texts(document.element.body, document) if t)


def extract_text(data: bytes, mimetype: str) -> str:
    if mimetype == PDF:
        return extract_pdf_text(data)
    if mimetype == DOCX:
        return extract_docx_text(data)
    # images carry no extractable text
    return ""
