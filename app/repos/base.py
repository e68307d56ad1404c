from typing import Any, Generic, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

Model = TypeVar("Model", bound=Base)
CreateSchema = TypeVar("CreateSchema", bound=BaseModel)


class BaseRepository(Generic[Model, CreateSchema]):
    """
    Primary key based access to one model.

    Writes commit by default; pass `auto_commit=False` to batch several
    writes in the caller's transaction.
    """

    def __init__(self, session: AsyncSession, model: Type[Model]):
        self.session = session
        self.model = model

    def _validate_column_exists(self, column_name: str) -> None:
        """
        Raises:
            ValueError: If the column doesn't exist on the model.
        """
        if not hasattr(self.model, column_name):
            raise ValueError(
                f"Column '{column_name}' does not exist on model {self.model.__name__}"
            )

    async def create_one(self, schema: CreateSchema, auto_commit: bool = True) -> Model:
        """
        Insert a row built from the schema.

        Args:
            schema (CreateSchema): Column values for the new row.
            auto_commit (bool): Whether to commit the transaction.

        Returns:
            Model: The inserted row, with server defaults populated.
        """
        stmt = insert(self.model).values(**schema.model_dump()).returning(self.model)
        result = await self.session.execute(stmt)
        if auto_commit:
            await self.session.commit()

        return result.scalar_one()

    async def get_by_id(self, obj_id: int) -> Model | None:
        stmt = select(self.model).where(self.model.id == obj_id)
        result = await self.session.execute(stmt)

        return result.scalar_one_or_none()

    async def update_values_by_id(
        self,
        obj_id: int,
        values: dict[str, Any],
        auto_commit: bool = True,
    ) -> int:
        """
        Set columns on the row with the given id.

        Args:
            obj_id (int): Primary key of the row.
            values (dict[str, Any]): Column values to set; SQL expressions are allowed.
            auto_commit (bool): Whether to commit the transaction.

        Returns:
            int: Number of updated rows, 0 when no row has that id.

        Raises:
            ValueError: If a column doesn't exist on the model.
        """
        for column_name in values:
            self._validate_column_exists(column_name)

        stmt = update(self.model).where(self.model.id == obj_id).values(**values)
        result = await self.session.execute(stmt)
        if auto_commit:
            await self.session.commit()

        return result.rowcount
