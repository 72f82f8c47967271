"""SQLAlchemy models for the product catalog.

Defines families, variants, technical characteristics, products and the
generated entries minted from them.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog_codegen.infrastructure.database import Base


def _uuid() -> str:
    return str(uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Family(Base):
    """Top-level product grouping (e.g. "VANNE").

    Attributes:
        id: Unique family identifier.
        name: Family name, stored in canonical upper-case form.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    __tablename__ = "families"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_now,
        onupdate=_now,
    )

    variants: Mapped[list["Variant"]] = relationship(
        "Variant",
        back_populates="family",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Family(id={self.id}, name={self.name})>"


class Variant(Base):
    """Sub-selector of a family at level FIRST or SECOND.

    The variant code is the fragment inserted into generated codes and is
    unique per family and level.
    """

    __tablename__ = "variants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    family_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    code: Mapped[str] = mapped_column(String(20), nullable=False)
    variant_level: Mapped[str] = mapped_column(String(10), nullable=False, default="FIRST")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)

    family: Mapped["Family"] = relationship("Family", back_populates="variants")

    __table_args__ = (
        UniqueConstraint("family_id", "variant_level", "code", name="uq_variants_family_level_code"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Variant(id={self.id}, code={self.code}, level={self.variant_level})>"


class VariantExclusion(Base):
    """Pair of variants that cannot be selected together.

    Stored once per direction.
    """

    __tablename__ = "variant_exclusions"

    variant_id_1: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("variants.id", ondelete="CASCADE"),
        primary_key=True,
    )
    variant_id_2: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("variants.id", ondelete="CASCADE"),
        primary_key=True,
    )


class TechnicalCharacteristic(Base):
    """Typed attribute scoped to families and optionally to variants.

    Attributes:
        id: Unique characteristic identifier.
        name: Name, unique across the catalog (case/accent-insensitive).
        type: One of string, number, boolean, enum.
        enum_options: Ordered allowed values when type is enum.
        enum_multiple: Whether several enum options may be selected.
        unique_in_itself: Whether every stored value must be distinct
            across the whole catalog.
    """

    __tablename__ = "technical_characteristics"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    enum_options: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    enum_multiple: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    unique_in_itself: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)

    families: Mapped[list["TechnicalCharacteristicFamily"]] = relationship(
        "TechnicalCharacteristicFamily",
        back_populates="technical_characteristic",
        cascade="all, delete-orphan",
    )
    variants: Mapped[list["TechnicalCharacteristicVariant"]] = relationship(
        "TechnicalCharacteristicVariant",
        back_populates="technical_characteristic",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<TechnicalCharacteristic(id={self.id}, name={self.name}, type={self.type})>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary.

        Returns:
            Dictionary representation.
        """
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "enum_options": self.enum_options,
            "enum_multiple": self.enum_multiple,
            "unique_in_itself": self.unique_in_itself,
            "family_ids": [link.family_id for link in self.families],
            "variant_ids": [link.variant_id for link in self.variants],
        }


class TechnicalCharacteristicFamily(Base):
    """Association between a characteristic and a family."""

    __tablename__ = "technical_characteristic_families"

    technical_characteristic_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("technical_characteristics.id", ondelete="CASCADE"),
        primary_key=True,
    )
    family_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("families.id", ondelete="CASCADE"),
        primary_key=True,
    )

    technical_characteristic: Mapped["TechnicalCharacteristic"] = relationship(
        "TechnicalCharacteristic", back_populates="families"
    )
    family: Mapped["Family"] = relationship("Family")


class TechnicalCharacteristicVariant(Base):
    """Association between a characteristic and a variant."""

    __tablename__ = "technical_characteristic_variants"

    technical_characteristic_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("technical_characteristics.id", ondelete="CASCADE"),
        primary_key=True,
    )
    variant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("variants.id", ondelete="CASCADE"),
        primary_key=True,
    )

    technical_characteristic: Mapped["TechnicalCharacteristic"] = relationship(
        "TechnicalCharacteristic", back_populates="variants"
    )
    variant: Mapped["Variant | None"] = relationship("Variant")


class ProductType(Base):
    """Product type, contributing its short code to generated codes."""

    __tablename__ = "product_types"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)


class Product(Base):
    """Product of a family.

    Attributes:
        id: Unique product identifier.
        name: Product name (unique, case/accent-insensitive).
        code: Product code (unique, case/accent-insensitive).
        family_id: Owning family.
        product_type_id: Product type.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    family_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("families.id"),
        nullable=False,
        index=True,
    )
    product_type_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("product_types.id"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)

    family: Mapped["Family"] = relationship("Family")
    product_type: Mapped["ProductType"] = relationship("ProductType")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Product(id={self.id}, code={self.code})>"


class GeneratedEntry(Base):
    """Generated code for a product, a variant selection and attribute values.

    Attributes:
        id: Unique entry identifier.
        product_id: Product the code was generated for.
        variant1_id: Selected FIRST-level variant, if any.
        variant2_id: Selected SECOND-level variant, if any.
        generated_code: Globally unique generated code.
        created_by: Actor that created the entry.
        updated_by: Actor that last touched the entry.
    """

    __tablename__ = "generated_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    product_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id"),
        nullable=False,
        index=True,
    )
    variant1_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("variants.id"),
        nullable=True,
        index=True,
    )
    variant2_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("variants.id"),
        nullable=True,
        index=True,
    )
    generated_code: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    updated_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_now,
        onupdate=_now,
    )

    product: Mapped["Product"] = relationship("Product")
    variant1: Mapped["Variant | None"] = relationship("Variant", foreign_keys=[variant1_id])
    variant2: Mapped["Variant | None"] = relationship("Variant", foreign_keys=[variant2_id])
    attribute_values: Mapped[list["AttributeValue"]] = relationship(
        "AttributeValue",
        back_populates="generated_entry",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<GeneratedEntry(id={self.id}, code={self.generated_code})>"


class AttributeValue(Base):
    """Value of one technical characteristic for a generated entry."""

    __tablename__ = "attribute_values"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    generated_entry_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("generated_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    technical_characteristic_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("technical_characteristics.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    value: Mapped[str] = mapped_column(String(255), nullable=False)

    generated_entry: Mapped["GeneratedEntry"] = relationship(
        "GeneratedEntry", back_populates="attribute_values"
    )
    technical_characteristic: Mapped["TechnicalCharacteristic"] = relationship("TechnicalCharacteristic")

    __table_args__ = (
        UniqueConstraint(
            "generated_entry_id",
            "technical_characteristic_id",
            name="uq_attribute_values_entry_characteristic",
        ),
    )
