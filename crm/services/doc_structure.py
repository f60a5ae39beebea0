"""Typed view of a Google Docs ``documents.get`` response.

Only the parts the pipeline reads are modelled: the body's structural
elements, paragraphs with their text runs, and tables with rows and cells.
Indexes are UTF-16 code-unit offsets into the document, as returned by the
API; they shift whenever content is inserted or deleted earlier in the body.
"""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _DocsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class TextRun(_DocsModel):
    content: str = ""


class ParagraphElement(_DocsModel):
    start_index: int | None = None
    end_index: int | None = None
    text_run: TextRun | None = None


class Paragraph(_DocsModel):
    elements: list[ParagraphElement] = Field(default_factory=list)


class TableCell(_DocsModel):
    start_index: int | None = None
    end_index: int | None = None
    content: list[StructuralElement] = Field(default_factory=list)

    @property
    def content_start_index(self) -> int | None:
        """Where text typed into the cell lands, or None for a malformed cell."""
        if not self.content:
            return None
        return self.content[0].start_index


class TableRow(_DocsModel):
    table_cells: list[TableCell] = Field(default_factory=list)


class Table(_DocsModel):
    rows: int = 0
    columns: int = 0
    table_rows: list[TableRow] = Field(default_factory=list)

    def cell(self, row: int, column: int) -> TableCell | None:
        if row >= len(self.table_rows):
            return None
        cells = self.table_rows[row].table_cells
        if column >= len(cells):
            return None
        return cells[column]


class StructuralElement(_DocsModel):
    start_index: int | None = None
    end_index: int | None = None
    paragraph: Paragraph | None = None
    table: Table | None = None


class Body(_DocsModel):
    content: list[StructuralElement] = Field(default_factory=list)


class RemoteDocument(_DocsModel):
    document_id: str = ""
    title: str = ""
    body: Body = Field(default_factory=Body)

    def paragraphs(self) -> Iterator[Paragraph]:
        """Top-level paragraphs in document order."""
        for element in self.body.content:
            if element.paragraph is not None:
                yield element.paragraph

    def tables(self) -> list[Table]:
        """Top-level tables in document order."""
        return [el.table for el in self.body.content if el.table is not None]


# Cells contain structural elements, which may contain tables again
for _model in (TableCell, TableRow, Table, StructuralElement, Body, RemoteDocument):
    _model.model_rebuild()


def utf16_len(text: str) -> int:
    """Length of ``text`` in UTF-16 code units, the unit Docs indexes count in."""
    return len(text.encode("utf-16-le")) // 2
