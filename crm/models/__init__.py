"""Import all models so SQLModel.metadata picks them up."""

from crm.models.counterparty import (
    Counterparty,
    CounterpartyCreate,
    CounterpartyRead,
    CounterpartyType,
    CounterpartyUpdate,
)
from crm.models.deal import (
    Comment,
    CommentCreate,
    CommentRead,
    Deal,
    DealCreate,
    DealDetailRead,
    DealProduct,
    DealProductCreate,
    DealProductRead,
    DealProductUpdate,
    DealRead,
    DealStageMove,
    DealStatus,
    DealUpdate,
)
from crm.models.document import (
    DocumentTemplate,
    GeneratedDocument,
    GeneratedDocumentCreate,
    GeneratedDocumentRead,
    TemplateCreate,
    TemplateRead,
    TemplateUpdate,
)
from crm.models.pipeline import (
    Pipeline,
    PipelineCreate,
    PipelineRead,
    Stage,
    StageCreate,
    StageOrder,
    StageRead,
    StageUpdate,
)
from crm.models.product import Product, ProductCreate, ProductRead, ProductUpdate
from crm.models.system_setting import SettingRead, SettingWrite, SystemSetting
from crm.models.user import User, UserCreate, UserRead, UserRole, UserUpdate

__all__ = [
    "Comment",
    "CommentCreate",
    "CommentRead",
    "Counterparty",
    "CounterpartyCreate",
    "CounterpartyRead",
    "CounterpartyType",
    "CounterpartyUpdate",
    "Deal",
    "DealCreate",
    "DealDetailRead",
    "DealProduct",
    "DealProductCreate",
    "DealProductRead",
    "DealProductUpdate",
    "DealRead",
    "DealStageMove",
    "DealStatus",
    "DealUpdate",
    "DocumentTemplate",
    "GeneratedDocument",
    "GeneratedDocumentCreate",
    "GeneratedDocumentRead",
    "Pipeline",
    "PipelineCreate",
    "PipelineRead",
    "Product",
    "ProductCreate",
    "ProductRead",
    "ProductUpdate",
    "SettingRead",
    "SettingWrite",
    "Stage",
    "StageCreate",
    "StageOrder",
    "StageRead",
    "StageUpdate",
    "SystemSetting",
    "TemplateCreate",
    "TemplateRead",
    "TemplateUpdate",
    "User",
    "UserCreate",
    "UserRead",
    "UserRole",
    "UserUpdate",
]
