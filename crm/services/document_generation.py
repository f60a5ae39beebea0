"""Document generation: turn a template and one deal into a filled DOCX.

Flow:
  1. Load the template and the deal (with counterparty and line items)
  2. Name the output file and pick the destination Drive folder
  3. Copy the template document
  4. Substitute {{placeholders}} with the deal's variable set
  5. Inject the products table (only when the deal has line items)
  6. Share the copy as "anyone with the link can view"
  7. Export the copy as DOCX and base64-encode it

Every step runs once; the first failure ends the run and is reported as a
failed ``GenerationResult``. A copy created in step 3 is left in Drive when a
later step fails. Saving the result is a separate call (``save_generated_document``).
"""

from __future__ import annotations

import base64
import logging
import re
import uuid
from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from crm.core.config import get_settings
from crm.models.counterparty import Counterparty
from crm.models.deal import Deal, DealProduct
from crm.models.document import DocumentTemplate
from crm.models.product import Product
from crm.models.system_setting import GOOGLE_DRIVE_FOLDER_ID
from crm.services.errors import (
    CopyFailed,
    DealNotFound,
    GenerationError,
    QuotaExceeded,
    RemoteAccessDenied,
    RemoteCallFailed,
    RemoteNotFound,
    TemplateNotFound,
)
from crm.services.google_docs import DOCX_MIME, DocumentClient
from crm.services.runtime_settings import SettingsProvider
from crm.services.table_injection import DEFAULT_MARKER, inject_table
from crm.services.token_substitution import substitute_tokens

logger = logging.getLogger(__name__)

PRODUCT_TABLE_HEADER = ["Item", "Qty", "Price", "Total"]
CENTS = Decimal("0.01")

# Fallbacks so no declared placeholder is ever left unresolved
FALLBACK_TITLE = "Untitled"
FALLBACK_DOC_NUMBER = "PENDING"
FALLBACK_COUNTERPARTY = "N/A"
FALLBACK_ITEM_NAME = "Unknown Item"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]")


@dataclass
class ProductRow:
    name: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(CENTS, rounding=ROUND_HALF_UP)

    def as_cells(self, currency_symbol: str) -> list[str]:
        return [
            self.name,
            str(self.quantity),
            format_currency(self.unit_price, currency_symbol),
            format_currency(self.line_total, currency_symbol),
        ]


@dataclass
class DealBundle:
    """A deal together with everything the document needs from it."""
    deal: Deal
    counterparty: Counterparty | None = None
    line_items: list[tuple[DealProduct, Product | None]] = field(default_factory=list)


@dataclass
class GenerationResult:
    """Either ``data`` + file details (success) or ``error`` (failure), never both."""
    success: bool
    data: str | None = None
    filename: str | None = None
    external_document_id: str | None = None
    view_link: str | None = None
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> GenerationResult:
        return cls(success=False, error=error)

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


# ── Pure helpers ──────────────────────────────────────────────

def sanitize_filename(text: str) -> str:
    """Replace every character outside [A-Za-z0-9] with an underscore."""
    return _UNSAFE_CHARS.sub("_", text)


def build_filename(template_name: str, document_number: str | None) -> str:
    """File name without extension, e.g. ``Sales_Contract_No_2024_001``."""
    number = document_number or FALLBACK_DOC_NUMBER
    return f"{sanitize_filename(template_name)}_No_{sanitize_filename(number)}"


def format_currency(amount: Decimal | float | int | None, symbol: str = "$") -> str:
    value = Decimal(str(amount or 0)).quantize(CENTS, rounding=ROUND_HALF_UP)
    return f"{symbol}{value:,}"


def build_variable_set(
    bundle: DealBundle,
    today: date,
    currency_symbol: str = "$",
    date_format: str = "%m/%d/%Y",
) -> dict[str, str]:
    deal = bundle.deal
    counterparty_name = bundle.counterparty.name if bundle.counterparty else None
    return {
        "title": deal.title or FALLBACK_TITLE,
        "doc_number": deal.document_number or FALLBACK_DOC_NUMBER,
        "amount": format_currency(deal.amount, currency_symbol),
        "cp_name": counterparty_name or FALLBACK_COUNTERPARTY,
        "date": today.strftime(date_format),
    }


def build_product_rows(
    line_items: list[tuple[DealProduct, Product | None]],
) -> list[ProductRow]:
    return [
        ProductRow(
            name=(product.name if product else None) or FALLBACK_ITEM_NAME,
            quantity=item.quantity,
            unit_price=Decimal(str(item.price_at_sale or 0)),
        )
        for item, product in line_items
    ]


async def resolve_destination_folder(
    template: DocumentTemplate,
    settings_provider: SettingsProvider,
    env_default: str | None = None,
) -> str | None:
    """Template folder, else the global setting, else the env default, else Drive root."""
    if template.destination_folder_id:
        return template.destination_folder_id
    global_folder = await settings_provider.get(GOOGLE_DRIVE_FOLDER_ID)
    if global_folder:
        return global_folder
    return env_default or None


def describe_copy_error(exc: RemoteCallFailed, template_doc_id: str) -> str:
    if isinstance(exc, RemoteNotFound):
        return (
            f"Template not found (ID: {template_doc_id}). "
            "Please verify: 1) The Google Doc ID is correct, "
            "2) The connected Google account has access to this document."
        )
    if isinstance(exc, QuotaExceeded):
        return (
            "Storage quota exceeded. Please provide a folder ID in your personal "
            "Google Drive to save generated documents, either on the template "
            "or in Settings (GOOGLE_DRIVE_FOLDER_ID)."
        )
    if isinstance(exc, RemoteAccessDenied):
        return (
            f"Access denied to template (ID: {template_doc_id}). "
            "Please share the document with the connected Google account "
            'and grant "Editor" permissions.'
        )
    return f"Failed to copy template: {exc.message or 'Unknown error'}"


def describe_remote_error(exc: RemoteCallFailed, step: str) -> str:
    if isinstance(exc, QuotaExceeded):
        return (
            f"Failed to {step}: storage quota exceeded. Please provide a folder ID "
            "in your personal Google Drive to save generated documents."
        )
    if isinstance(exc, RemoteAccessDenied):
        return (
            f"Failed to {step}: access denied. Please check that the connected "
            "Google account can edit the generated document."
        )
    return f"Failed to {step}: {exc.message}"


# ── Loading ───────────────────────────────────────────────────

def _as_uuid(value: uuid.UUID | str) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


async def load_deal_bundle(session: AsyncSession, deal_id: uuid.UUID) -> DealBundle | None:
    deal = await session.get(Deal, deal_id)
    if deal is None:
        return None

    counterparty = None
    if deal.counterparty_id is not None:
        counterparty = await session.get(Counterparty, deal.counterparty_id)

    stmt = (
        select(DealProduct, Product)
        .join(Product, Product.id == DealProduct.product_id, isouter=True)  # type: ignore[arg-type]
        .where(DealProduct.deal_id == deal.id)
        .order_by(DealProduct.created_at.asc())  # type: ignore[union-attr]
    )
    result = await session.execute(stmt)
    line_items = [(item, product) for item, product in result.all()]

    return DealBundle(deal=deal, counterparty=counterparty, line_items=line_items)


# ── Pipeline ──────────────────────────────────────────────────

async def generate_document(
    session: AsyncSession,
    template_id: uuid.UUID | str,
    deal_id: uuid.UUID | str,
    *,
    client: DocumentClient,
    settings_provider: SettingsProvider,
    today: date | None = None,
) -> GenerationResult:
    """Run the whole pipeline. Never raises; failures come back as results."""
    try:
        return await _run_pipeline(
            session, template_id, deal_id,
            client=client,
            settings_provider=settings_provider,
            today=today or date.today(),
        )
    except GenerationError as exc:
        logger.warning(
            "Document generation failed (template=%s, deal=%s): %s",
            template_id, deal_id, exc.message,
        )
        return GenerationResult.failure(exc.message)
    except Exception:
        logger.exception(
            "Unexpected error generating document (template=%s, deal=%s)",
            template_id, deal_id,
        )
        return GenerationResult.failure("Failed to generate document")


async def _run_pipeline(
    session: AsyncSession,
    template_id: uuid.UUID | str,
    deal_id: uuid.UUID | str,
    *,
    client: DocumentClient,
    settings_provider: SettingsProvider,
    today: date,
) -> GenerationResult:
    settings = get_settings()

    # 1. Template
    template_uuid = _as_uuid(template_id)
    template = await session.get(DocumentTemplate, template_uuid) if template_uuid else None
    if template is None:
        raise TemplateNotFound()

    # 2. Deal with counterparty + line items
    deal_uuid = _as_uuid(deal_id)
    bundle = await load_deal_bundle(session, deal_uuid) if deal_uuid else None
    if bundle is None:
        raise DealNotFound()

    # 3. File name
    file_name = build_filename(template.name, bundle.deal.document_number)

    # 4. Destination folder
    folder_id = await resolve_destination_folder(
        template, settings_provider, settings.google_drive_folder_id,
    )

    # 5. Copy
    logger.info(
        "Copying template %s as %r into folder %s",
        template.external_document_id, file_name, folder_id or "<root>",
    )
    try:
        new_doc_id = await client.copy(template.external_document_id, file_name, folder_id)
    except RemoteCallFailed as exc:
        raise CopyFailed(describe_copy_error(exc, template.external_document_id), exc) from exc

    try:
        # 6. Variables
        variables = build_variable_set(
            bundle, today,
            currency_symbol=settings.currency_symbol,
            date_format=settings.document_date_format,
        )
        await _remote_step("replace variables", substitute_tokens(client, new_doc_id, variables))

        # 7. Products table
        rows = build_product_rows(bundle.line_items)
        if rows:
            await _remote_step("insert products table", inject_table(
                client,
                new_doc_id,
                PRODUCT_TABLE_HEADER,
                [row.as_cells(settings.currency_symbol) for row in rows],
                marker=DEFAULT_MARKER,
            ))

        # 8. Share link
        view_link = await _remote_step("share document", client.grant_public_read(new_doc_id))

        # 9. Export
        docx_bytes = await _remote_step("export document", client.export_as(new_doc_id, DOCX_MIME))
    except Exception:
        # TODO: decide whether the orphaned copy should be trashed on failure
        logger.warning("Generated copy %s left in Drive after failure", new_doc_id)
        raise

    logger.info("Generated %s.docx (%d bytes) from template %s", file_name, len(docx_bytes), template.id)

    # 10. Result
    return GenerationResult(
        success=True,
        data=base64.b64encode(docx_bytes).decode("ascii"),
        filename=f"{file_name}.docx",
        external_document_id=new_doc_id,
        view_link=view_link,
    )


async def _remote_step(step: str, awaitable):
    try:
        return await awaitable
    except RemoteCallFailed as exc:
        raise GenerationError(describe_remote_error(exc, step)) from exc
