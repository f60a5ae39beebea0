"""Insert a populated table into a remote document at a marker.

Flow:
  1. Locate: read the document, find the first paragraph text run holding
     the marker
  2. Clear: delete exactly the marker's characters
  3. Insert: create an empty (rows + 1) x len(header) table at that offset
  4. Re-locate: read the document again and take the last table in the body
  5. Populate: insert header and cell text at each cell's content offset

The Docs API does not return cell addresses from insertTable, hence the second
read. Offsets from step 4 are only valid while nobody else edits the copy;
each generation works on its own fresh copy, so that holds in practice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from crm.services.doc_structure import RemoteDocument, Table, utf16_len
from crm.services.google_docs import DocumentClient

logger = logging.getLogger(__name__)

DEFAULT_MARKER = "{{products_table}}"
# Index 0 is the body's section break; 1 is the first insertable position
BODY_START_INDEX = 1


@dataclass
class MarkerLocation:
    start_index: int
    end_index: int


@dataclass
class TableInjectionReport:
    found_marker: bool
    insert_index: int
    rows: int
    columns: int
    cells_populated: int = 0
    cells_skipped: int = 0


def find_marker(document: RemoteDocument, marker: str) -> MarkerLocation | None:
    """Return the first marker occurrence in top-level paragraphs, in order."""
    for paragraph in document.paragraphs():
        for element in paragraph.elements:
            if element.text_run is None or element.start_index is None:
                continue
            content = element.text_run.content
            pos = content.find(marker)
            if pos < 0:
                continue
            start = element.start_index + utf16_len(content[:pos])
            return MarkerLocation(start_index=start, end_index=start + utf16_len(marker))
    return None


def build_population_requests(
    table: Table,
    header: list[str],
    rows: list[list[str]],
) -> tuple[list[dict], int]:
    """insertText requests for every addressable cell, plus a skipped count.

    Requests are ordered by descending index: the batch applies them in
    sequence, and inserting at a higher offset leaves lower offsets intact.
    """
    targets: list[tuple[int, str]] = []
    skipped = 0

    grid = [header, *rows]
    for r, values in enumerate(grid):
        for c, text in enumerate(values):
            cell = table.cell(r, c)
            index = cell.content_start_index if cell is not None else None
            if index is None:
                skipped += 1
                continue
            if text:
                targets.append((index, text))

    targets.sort(key=lambda t: t[0], reverse=True)
    requests = [
        {"insertText": {"location": {"index": index}, "text": text}}
        for index, text in targets
    ]
    return requests, skipped


async def inject_table(
    client: DocumentClient,
    document_id: str,
    header: list[str],
    rows: list[list[str]],
    marker: str = DEFAULT_MARKER,
) -> TableInjectionReport:
    """Replace ``marker`` with a table of ``header`` + ``rows``.

    A missing marker is not an error: the table goes to the top of the body.
    Cells whose content offset cannot be resolved are skipped individually.
    """
    # 1. Locate
    document = await client.get_document(document_id)
    location = find_marker(document, marker)

    requests: list[dict] = []
    if location is None:
        logger.warning(
            "Marker %s not found in %s; inserting table at document start",
            marker, document_id,
        )
        insert_index = BODY_START_INDEX
    else:
        # 2. Clear; removing the marker shifts everything after it left
        requests.append({
            "deleteContentRange": {
                "range": {
                    "startIndex": location.start_index,
                    "endIndex": location.end_index,
                },
            },
        })
        insert_index = location.start_index

    # 3. Insert
    report = TableInjectionReport(
        found_marker=location is not None,
        insert_index=insert_index,
        rows=len(rows) + 1,
        columns=len(header),
    )
    requests.append({
        "insertTable": {
            "rows": report.rows,
            "columns": report.columns,
            "location": {"index": insert_index},
        },
    })
    await client.batch_update(document_id, requests)

    # 4. Re-locate
    updated = await client.get_document(document_id)
    tables = updated.tables()
    if not tables:
        logger.warning("Inserted table not found on re-read of %s", document_id)
        report.cells_skipped = report.rows * report.columns
        return report
    table = tables[-1]

    # 5. Populate
    populate, skipped = build_population_requests(table, header, rows)
    report.cells_skipped = skipped
    if skipped:
        logger.warning("Skipped %d table cell(s) without an offset in %s", skipped, document_id)
    if populate:
        await client.batch_update(document_id, populate)
    report.cells_populated = len(populate)

    logger.info(
        "Inserted %dx%d table into %s at index %d",
        report.rows, report.columns, document_id, insert_index,
    )
    return report
