"""Cosmos DB employee store (create, read, update, delete)."""

from __future__ import annotations

import logging
from typing import Any

from azure.cosmos.aio import CosmosClient
from azure.cosmos.exceptions import CosmosResourceExistsError, CosmosResourceNotFoundError

from employee_vault.core.config import Settings
from employee_vault.models.employee import Employee, EmployeeBase, EmployeeCreate, EmployeeUpdate
from employee_vault.services.employee_validation import ensure_valid

logger = logging.getLogger(__name__)

_MAX_CREATE_ATTEMPTS = 3

# Python attribute names → Cosmos DB document keys
_FIELD_MAP: list[tuple[str, str]] = [
    ("employee_id", "EmployeeId"),
    ("employee_code", "EmployeeCode"),
    ("address", "Address"),
    ("designation", "Designation"),
]


class EmployeeStoreError(Exception):
    pass


class EmployeeStoreUnavailableError(EmployeeStoreError):
    pass


def _to_document(employee_id: int, data: EmployeeBase) -> dict[str, Any]:
    values = {"employee_id": employee_id, **data.model_dump(include={"employee_code", "address", "designation"})}
    doc: dict[str, Any] = {"id": str(employee_id)}
    for python_key, cosmos_key in _FIELD_MAP:
        doc[cosmos_key] = values.get(python_key)
    return doc


class EmployeeService:
    def __init__(self) -> None:
        self.client: CosmosClient | None = None
        self.container: Any = None
        self.initialized: bool = False

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        endpoint = settings.COSMOS_DB_ENDPOINT
        key = settings.COSMOS_DB_KEY
        database_name = settings.COSMOS_DB_DATABASE
        container_name = settings.COSMOS_DB_EMPLOYEES_CONTAINER

        if not endpoint or not key:
            logger.warning("Cosmos DB credentials missing, EmployeeService not initialized")
            return

        self.client = CosmosClient(endpoint, key)
        db = self.client.get_database_client(database_name)
        self.container = db.get_container_client(container_name)
        self.initialized = True
        logger.info("EmployeeService initialized (container=%s)", container_name)

    async def close(self) -> None:
        if self.client:
            await self.client.close()
            self.client = None
            self.container = None
            self.initialized = False

    def _require_container(self) -> Any:
        if not self.container:
            raise EmployeeStoreUnavailableError("Employee store is not configured")
        return self.container

    async def list_employees(self, skip: int = 0, limit: int = 50) -> list[Employee]:
        if not self.container:
            return []

        query = "SELECT * FROM c ORDER BY c.EmployeeId OFFSET @skip LIMIT @limit"
        params: list[dict[str, Any]] = [
            {"name": "@skip", "value": skip},
            {"name": "@limit", "value": limit},
        ]

        results: list[Employee] = []
        async for item in self.container.query_items(
            query=query,
            parameters=params,
            enable_cross_partition_query=True,
        ):
            try:
                results.append(self._transform_employee(item))
            except EmployeeStoreError as e:
                logger.warning("Skipping document in employee listing: %s", e)

        return results

    async def get_employee(self, employee_id: int) -> Employee | None:
        if not self.container:
            return None

        item_id = str(employee_id)
        try:
            raw = await self.container.read_item(item=item_id, partition_key=item_id)
        except CosmosResourceNotFoundError:
            return None

        return self._transform_employee(raw)

    async def create_employee(self, data: EmployeeCreate) -> Employee:
        ensure_valid(data)
        container = self._require_container()

        for attempt in range(1, _MAX_CREATE_ATTEMPTS + 1):
            employee_id = await self._next_employee_id()
            try:
                created = await container.create_item(body=_to_document(employee_id, data))
            except CosmosResourceExistsError:
                logger.warning(
                    "EmployeeId %d already taken (attempt %d/%d), retrying",
                    employee_id,
                    attempt,
                    _MAX_CREATE_ATTEMPTS,
                )
                continue

            logger.info("Created employee %d", employee_id)
            return self._transform_employee(created)

        raise EmployeeStoreError(f"Could not assign an EmployeeId after {_MAX_CREATE_ATTEMPTS} attempts")

    async def update_employee(self, employee_id: int, data: EmployeeUpdate) -> Employee | None:
        ensure_valid(data)
        container = self._require_container()

        item_id = str(employee_id)
        try:
            replaced = await container.replace_item(item=item_id, body=_to_document(employee_id, data))
        except CosmosResourceNotFoundError:
            return None

        logger.info("Updated employee %d", employee_id)
        return self._transform_employee(replaced)

    async def delete_employee(self, employee_id: int) -> bool:
        container = self._require_container()

        item_id = str(employee_id)
        try:
            await container.delete_item(item=item_id, partition_key=item_id)
        except CosmosResourceNotFoundError:
            return False

        logger.info("Deleted employee %d", employee_id)
        return True

    async def check_connection(self) -> bool:
        if not self.container:
            return False
        try:
            query = "SELECT VALUE COUNT(1) FROM c"
            async for _ in self.container.query_items(
                query=query,
                enable_cross_partition_query=True,
            ):
                return True
            return True
        except Exception:
            logger.exception("Cosmos DB connection check failed")
            return False

    async def _next_employee_id(self) -> int:
        highest: int | None = None
        async for value in self.container.query_items(
            query="SELECT VALUE MAX(c.EmployeeId) FROM c",
            enable_cross_partition_query=True,
        ):
            if isinstance(value, int):
                highest = value if highest is None else max(highest, value)
        return (highest or 0) + 1

    def _transform_employee(self, raw: dict[str, Any]) -> Employee:
        data: dict[str, Any] = {}
        for python_key, cosmos_key in _FIELD_MAP:
            data[python_key] = raw.get(cosmos_key)

        # Fallback: documents written without EmployeeId still carry it as the Cosmos id
        if data["employee_id"] is None:
            try:
                data["employee_id"] = int(raw["id"])
            except (KeyError, TypeError, ValueError) as e:
                raise EmployeeStoreError(f"Document {raw.get('id')!r} has no usable EmployeeId") from e

        return Employee(**data)


employee_service = EmployeeService()
