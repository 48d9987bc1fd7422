"""Declarative field schemas for the tenant-scoped record kinds.

Every kind is described once here. The schema manager derives its DDL from
these definitions, the repository derives its column lists, and the API layer
derives a pydantic request model, so adding a column means adding one
``FieldSpec``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, create_model

DEFAULT_STATUS = "Active"
OWNER_COLUMN = "usuario_id"
CREATED_COLUMN = "criado_em"


def _blank_to_zero(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _blank_to_status(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_STATUS
    return value


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """A single kind attribute: column name, value type and SQL type."""

    name: str
    type: str = "str"
    sql_type: str = "VARCHAR(255)"

    @property
    def ddl(self) -> str:
        if self.type in ("decimal", "int"):
            return f"{self.sql_type} DEFAULT 0"
        if self.name == "status":
            return f"{self.sql_type} DEFAULT '{DEFAULT_STATUS}'"
        return self.sql_type

    def annotation(self) -> tuple[Any, Any]:
        """Return the ``(type, default)`` pair used to build the request model."""
        if self.type == "decimal":
            return Annotated[Decimal, BeforeValidator(_blank_to_zero)], Decimal("0")
        if self.type == "int":
            return Annotated[int, BeforeValidator(_blank_to_zero)], 0
        if self.type == "date":
            return Annotated[date | None, BeforeValidator(_blank_to_none)], None
        if self.name == "status":
            return Annotated[str, BeforeValidator(_blank_to_status)], DEFAULT_STATUS
        return str | None, None


def text(name: str, sql_type: str = "VARCHAR(255)") -> FieldSpec:
    return FieldSpec(name, "str", sql_type)


def money(name: str) -> FieldSpec:
    return FieldSpec(name, "decimal", "NUMERIC(12, 2)")


def count(name: str) -> FieldSpec:
    return FieldSpec(name, "int", "INTEGER")


def day(name: str) -> FieldSpec:
    return FieldSpec(name, "date", "DATE")


STATUS = text("status", "VARCHAR(20)")


@dataclass(frozen=True)
class RecordKind:
    """A tenant-scoped record family stored in its own table."""

    name: str
    label: str
    table: str
    paths: tuple[str, ...]
    fields: tuple[FieldSpec, ...]
    model: type[BaseModel] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        definitions = {spec.name: spec.annotation() for spec in self.fields}
        model = create_model(
            f"{self.name.title().replace('_', '')}Payload",
            __config__=ConfigDict(extra="ignore", str_strip_whitespace=True),
            **definitions,
        )
        object.__setattr__(self, "model", model)

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    def normalize(self, payload: dict[str, Any] | BaseModel) -> dict[str, Any]:
        """Apply defaults and coercions, returning a value for every column."""
        if isinstance(payload, BaseModel):
            payload = payload.model_dump()
        return self.model.model_validate(payload).model_dump()


CUSTOMER = RecordKind(
    name="customer",
    label="Customer",
    table="clientes",
    paths=("customers", "clientes"),
    fields=(
        text("nome"),
        text("documento", "VARCHAR(50)"),
        text("telefone", "VARCHAR(50)"),
        text("email"),
        text("endereco"),
        text("cidade", "VARCHAR(100)"),
        text("cep", "VARCHAR(20)"),
        text("tipo", "VARCHAR(20)"),
        STATUS,
    ),
)

SUPPLIER = RecordKind(
    name="supplier",
    label="Supplier",
    table="fornecedores",
    paths=("suppliers", "fornecedores"),
    fields=(
        text("nome"),
        text("cnpj", "VARCHAR(50)"),
        text("contato"),
        text("telefone", "VARCHAR(50)"),
        text("email"),
        text("endereco"),
        text("cidade", "VARCHAR(100)"),
        text("categoria", "VARCHAR(100)"),
        STATUS,
    ),
)

EMPLOYEE = RecordKind(
    name="employee",
    label="Employee",
    table="funcionarios",
    paths=("employees", "funcionarios"),
    fields=(
        text("nome"),
        text("cpf", "VARCHAR(20)"),
        text("cargo", "VARCHAR(100)"),
        text("departamento", "VARCHAR(100)"),
        text("telefone", "VARCHAR(50)"),
        text("email"),
        money("salario"),
        day("data_admissao"),
        STATUS,
    ),
)

PRODUCT = RecordKind(
    name="product",
    label="Product",
    table="produtos",
    paths=("products", "produtos"),
    fields=(
        text("nome"),
        text("codigo", "VARCHAR(50)"),
        text("categoria", "VARCHAR(100)"),
        text("descricao", "TEXT"),
        text("unidade", "VARCHAR(20)"),
        money("preco_custo"),
        money("preco_venda"),
        count("estoque"),
        count("estoque_minimo"),
        STATUS,
    ),
)

SERVICE_ORDER = RecordKind(
    name="service_order",
    label="Service order",
    table="ordens_servico",
    paths=("service-orders", "ordens_servico"),
    fields=(
        text("cliente"),
        text("equipamento"),
        text("defeito", "TEXT"),
        text("tecnico", "VARCHAR(100)"),
        money("valor_total"),
        day("data_abertura"),
        day("data_conclusao"),
        text("observacoes", "TEXT"),
        STATUS,
    ),
)

KINDS: tuple[RecordKind, ...] = (CUSTOMER, SUPPLIER, EMPLOYEE, PRODUCT, SERVICE_ORDER)
