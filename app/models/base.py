import enum

from sqlalchemy import Column, DateTime, Enum, func


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


def value_enum(enum_cls: type[enum.Enum], name: str) -> Enum:
    # Persist the lowercase values ("investor"), not the member names, to match the migrations.
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
